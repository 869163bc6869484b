"""
=============================================================================
TRY-FILES HANDLER
=============================================================================

The classic `try_files $uri /index.html =404` of static web servers:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TRY SEQUENCE                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   request ─► rewrite? ─► no filesystem? ───────────────► not_found  │
    │                              │                                       │
    │                              ▼                                       │
    │              FileServer(shadow writer, request)                      │
    │                              │                                       │
    │              anything but 404 ─► already delivered, done             │
    │                              │                                       │
    │                             404 (held back, writer uncommitted)      │
    │                              │                                       │
    │              drop Content-Type / X-Content-Type-Options              │
    │                              │                                       │
    │              for name in try_files:                                  │
    │                  open + stat ─► ok ─────────► serve_content, done    │
    │                      │  not found ──────────► next candidate         │
    │                      │  permission denied ──► 403, done              │
    │                      │  other error ────────► 500, done              │
    │                      │  directory ──────────► 500, done              │
    │                              │                                       │
    │                              ▼                                       │
    │                          not_found(writer, request)                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Candidates are tried strictly in list order and the first one that opens
wins; there is no best-match heuristic. Candidates are fixed internal
paths and are opened directly, not through FileServer.

=============================================================================
USAGE
=============================================================================

    spa = (TryFilesHandler()
        .directory("./dist")              # default fallback: /index.html
        .strip_prefix("/app"))

    docs = (TryFilesHandler()
        .filesystem(MemoryFileSystem(pages), "/404.html", "/index.html")
        .not_found(custom_404))

    spa(writer, request)

=============================================================================
CONFIGURATION IS A SNAPSHOT
=============================================================================

Builder calls replace an immutable TryFilesOptions under a lock; each
request reads the snapshot once and never sees half of a
reconfiguration.

=============================================================================
"""

import logging
import posixpath
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from ..core.writer_pool import WriterPool, default_pool
from ..fs import DirFileSystem, FileSystem, status_for_error
from ..http.request import HTTPRequest
from ..http.response import Handler, ResponseWriter, not_found_handler, status_respond
from ..http.status_codes import HTTPStatus
from . import rewrite as rewriters
from .rewrite import Rewriter
from .static import FileServer, serve_content


logger = logging.getLogger(__name__)


DEFAULT_TRY_FILES: Tuple[str, ...] = ("/index.html",)

# Headers a failed attempt may have set that must not leak into a fallback.
# The fallback's Content-Type is recomputed from its own name.
_STALE_HEADERS = ("Content-Type", "X-Content-Type-Options")


@dataclass(frozen=True)
class TryFilesOptions:
    """Immutable configuration snapshot of a TryFilesHandler."""

    filesystem: Optional[FileSystem] = None
    file_server: Optional[Handler] = None
    try_files: Tuple[str, ...] = DEFAULT_TRY_FILES
    not_found: Handler = not_found_handler
    rewrite: Optional[Rewriter] = None


class TryFilesHandler:
    """
    Serve a static file, else the first existing fallback, else delegate.

    Every builder method returns the handler, so configuration chains.
    """

    def __init__(
        self,
        filesystem: Optional[FileSystem] = None,
        try_files: Optional[Tuple[str, ...]] = None,
        not_found: Optional[Handler] = None,
        rewrite: Optional[Rewriter] = None,
        pool: Optional[WriterPool] = None,
        file_server_factory: Callable[[FileSystem], Handler] = FileServer,
    ):
        """
        Args:
            filesystem: Files to serve; None sends every request to not_found.
            try_files: Fallback candidates, default ("/index.html",).
            not_found: Terminal handler, default 404 "404 not found".
            rewrite: Applied to each request before lookup.
            pool: ShadowWriter pool, default the process-wide one.
            file_server_factory: Builds the generic file server for a
                                 filesystem.
        """
        self.pool = pool if pool is not None else default_pool
        self._file_server_factory = file_server_factory
        self._lock = threading.Lock()
        self._options = TryFilesOptions(
            filesystem=filesystem,
            file_server=file_server_factory(filesystem) if filesystem is not None else None,
            try_files=tuple(try_files) if try_files is not None else DEFAULT_TRY_FILES,
            not_found=not_found or not_found_handler,
            rewrite=rewrite,
        )

    @property
    def options(self) -> TryFilesOptions:
        return self._options

    # =========================================================================
    # BUILDER
    # =========================================================================

    def _update(self, **changes) -> "TryFilesHandler":
        with self._lock:
            self._options = replace(self._options, **changes)
        return self

    def filesystem(self, fs: Optional[FileSystem], *try_files: str) -> "TryFilesHandler":
        """
        Set the backing filesystem.

        Candidates given here replace the fallback list only if the first
        one is non-empty; otherwise the current list is kept.
        """
        changes = {
            "filesystem": fs,
            "file_server": self._file_server_factory(fs) if fs is not None else None,
        }
        if try_files and try_files[0]:
            changes["try_files"] = tuple(try_files)
        return self._update(**changes)

    def directory(self, root: Union[str, Path], *try_files: str) -> "TryFilesHandler":
        """Serve a directory on disk (see DirFileSystem)."""
        return self.filesystem(DirFileSystem(root), *try_files)

    def try_files(self, *names: str) -> "TryFilesHandler":
        """Replace the fallback list outright (an empty list is allowed)."""
        return self._update(try_files=tuple(names))

    def not_found(self, handler: Handler) -> "TryFilesHandler":
        """Set the terminal handler."""
        return self._update(not_found=handler)

    def rewrite(self, rewriter: Optional[Rewriter]) -> "TryFilesHandler":
        """Set (or clear) the request rewriter."""
        return self._update(rewrite=rewriter)

    def strip_prefix(self, prefix: str) -> "TryFilesHandler":
        return self.rewrite(rewriters.strip_prefix(prefix))

    def strip_suffix(self, suffix: str) -> "TryFilesHandler":
        return self.rewrite(rewriters.strip_suffix(suffix))

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def __call__(self, writer: ResponseWriter, request: HTTPRequest) -> None:
        options = self._options

        if options.rewrite is not None:
            request = options.rewrite(request)

        if options.filesystem is None:
            options.not_found(writer, request)
            return

        with self.pool.borrow(writer) as shadow:
            options.file_server(shadow, request)
            if not shadow.not_found:
                return

        headers = writer.headers
        for name in _STALE_HEADERS:
            headers.pop(name, None)

        for name in options.try_files:
            if self._try_file(writer, request, options.filesystem, name):
                return

        logger.debug(f"No file or fallback for {request.path}")
        options.not_found(writer, request)

    def _try_file(
        self,
        writer: ResponseWriter,
        request: HTTPRequest,
        fs: FileSystem,
        name: str,
    ) -> bool:
        """
        Serve one candidate.

        Returns:
            False if it does not exist (try the next one), True if a
            response was written (the file, or a 403/500). A directory
            exists, so it ends the walk with a 500.
        """
        try:
            file = fs.open(name)
        except OSError as e:
            return self._candidate_failed(writer, name, e)

        with file:
            try:
                info = file.stat()
            except OSError as e:
                return self._candidate_failed(writer, name, e)

            if info.is_dir:
                logger.warning(f"Fallback {name} is a directory, not a file")
                status_respond(writer, HTTPStatus.INTERNAL_SERVER_ERROR)
                return True

            logger.debug(f"Serving fallback {name} for {request.path}")
            serve_content(writer, request, posixpath.basename(name), info.mod_time, file)
        return True

    def _candidate_failed(self, writer: ResponseWriter, name: str, exc: OSError) -> bool:
        status = status_for_error(exc)
        if status == HTTPStatus.NOT_FOUND:
            return False

        logger.warning(f"Fallback {name} failed with {int(status)}: {exc}")
        status_respond(writer, status)
        return True
