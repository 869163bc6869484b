"""
=============================================================================
TRYFILES - Static File Serving With Fallbacks
=============================================================================

An HTTP handler that serves a static file if it exists, otherwise the first
existing file from a fallback list, otherwise delegates to a not-found
handler. This is what single-page apps and static documentation sites need:

    GET /dashboard/settings      (no such file)
        └── /index.html          served instead, client-side router takes over

    GET /docs/missing            (no such file)
        └── /404.html            served instead of a bare 404

=============================================================================
HOW IT WORKS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   TryFilesHandler                                                    │
    │     │                                                                │
    │     ├── rewrite the request (strip_prefix / strip_suffix)            │
    │     │                                                                │
    │     ├── FileServer ──► ShadowWriter ──► real writer                  │
    │     │                      │                                         │
    │     │                      └── a 404 is held back, not sent          │
    │     │                                                                │
    │     ├── held-back 404? try each fallback in order                    │
    │     │                                                                │
    │     └── nothing found: not_found(writer, request)                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tryfiles/
    ├── __init__.py          # Package exports
    ├── __main__.py          # CLI entry point (python -m tryfiles)
    ├── server.py            # HTTPServer: sockets → handler → responses
    ├── config.py            # ServerConfig dataclass
    ├── fs.py                # FileSystem abstraction (disk, in-memory)
    ├── core/
    │   ├── shadow.py        # ShadowWriter (the no-404 writer)
    │   ├── writer_pool.py   # Reusable ShadowWriters
    │   ├── socket_server.py # TCP accept loop
    │   ├── connection.py    # Client connection wrapper
    │   └── thread_pool.py   # Worker threads
    ├── http/
    │   ├── request.py       # HTTP request parsing
    │   ├── response.py      # Responses and response writers
    │   ├── status_codes.py  # HTTP status enum
    │   └── mime_types.py    # Content-Type detection
    └── handlers/
        ├── tryfiles.py      # TryFilesHandler
        ├── static.py        # FileServer and serve_content
        └── rewrite.py       # Request rewriters

=============================================================================
QUICK START
=============================================================================

    from tryfiles import HTTPServer, ServerConfig, TryFilesHandler

    handler = (TryFilesHandler()
        .directory("./dist", "/index.html")
        .strip_prefix("/app"))

    HTTPServer(ServerConfig(port=8080), handler).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .fs import DirFileSystem, MemoryFileSystem, FileSystem
from .handlers import TryFilesHandler, FileServer, strip_prefix, strip_suffix
from .core import init_pool
from .server import HTTPServer, create_app

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "TryFilesHandler",
    "FileServer",
    "FileSystem",
    "DirFileSystem",
    "MemoryFileSystem",
    "strip_prefix",
    "strip_suffix",
    "init_pool",
    "create_app",
    "__version__",
]
