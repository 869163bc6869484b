"""
=============================================================================
REQUEST HANDLERS
=============================================================================

Every handler has the same shape:

    def handler(writer: ResponseWriter, request: HTTPRequest) -> None

    ┌─────────────────────────────────────────────────────────────────────┐
    │ tryfiles.py   TryFilesHandler: file, else fallbacks, else not_found │
    │ static.py     FileServer + serve_content: plain static serving      │
    │ rewrite.py    strip_prefix / strip_suffix request rewriters         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .static import FileServer, serve_content, parse_range, RangeNotSatisfiable
from .rewrite import Rewriter, strip_prefix, strip_suffix
from .tryfiles import TryFilesHandler, TryFilesOptions, DEFAULT_TRY_FILES

__all__ = [
    "TryFilesHandler",
    "TryFilesOptions",
    "DEFAULT_TRY_FILES",
    "FileServer",
    "serve_content",
    "parse_range",
    "RangeNotSatisfiable",
    "Rewriter",
    "strip_prefix",
    "strip_suffix",
]
