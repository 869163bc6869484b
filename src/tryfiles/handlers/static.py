"""
=============================================================================
STATIC FILE SERVING
=============================================================================

The generic file-serving routine the try-files handler delegates to.

    FileServer(fs).serve(writer, request)
        "Serve whatever request.path names on this filesystem."

    serve_content(writer, request, name, mod_time, file)
        "Stream this already-open file, honoring conditional and range
         headers."

TryFilesHandler calls FileServer for the client-controlled path, and
serve_content directly for its own fixed fallback candidates.

=============================================================================
CACHING AND CONDITIONAL REQUESTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP CACHING HEADERS                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ETag: "1760000000-5120"      mtime-size fingerprint               │
    │   Last-Modified: Thu, 09 Oct 2025 08:53:20 GMT                      │
    │   Cache-Control: public, max-age=3600                               │
    │                                                                      │
    │   Request: If-None-Match: "1760000000-5120"  → 304 Not Modified     │
    │   Request: If-Modified-Since: <date>         → 304 if not newer     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
RANGE REQUESTS
=============================================================================

    Range: bytes=0-99       first 100 bytes             → 206
    Range: bytes=100-       from offset 100 to the end  → 206
    Range: bytes=-100       last 100 bytes              → 206
    Range: bytes=9999-      past the end                → 416

    206 responses carry "Content-Range: bytes 0-99/5120". Only a single
    range is honored; a multi-range request gets the whole file (200),
    which RFC 7233 allows. An If-Range that no longer matches also gets
    the whole file.

=============================================================================
"""

import html
import logging
import posixpath
from datetime import datetime
from typing import List, Optional, Tuple

from ..fs import File, FileInfo, FileSystem, ErrorKind, classify_error, clean_path, status_for_error
from ..http.mime_types import get_content_type
from ..http.request import HTTPRequest
from ..http.response import ResponseWriter, format_http_date, parse_http_date, status_respond
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class RangeNotSatisfiable(Exception):
    """The Range header asks for bytes the file does not have."""


class FileServer:
    """
    Serves files from a FileSystem.

    =========================================================================
    FLOW
    =========================================================================

        Request: GET /assets/app.js

        1. Clean the path ("/a/../b" → "/b")
        2. Open it on the filesystem
              FileNotFoundError  → 404
              PermissionError    → 403
              other OSError      → 500
        3. Directory? serve its index file, a listing (if enabled), or 404
        4. File? serve_content() with caching and range support

    =========================================================================
    USAGE
    =========================================================================

        server = FileServer(DirFileSystem("./public"), cache_max_age=86400)
        server(writer, request)

    =========================================================================
    """

    def __init__(
        self,
        fs: FileSystem,
        index_file: str = "index.html",
        cache_max_age: Optional[int] = 3600,
        enable_directory_listing: bool = False,
    ):
        """
        Args:
            fs: Filesystem to serve from.
            index_file: File served for directory requests.
            cache_max_age: Cache-Control max-age in seconds; None omits
                          the header.
            enable_directory_listing: List directories without an index
                                     file. Off by default, so such
                                     requests are 404 and fall through.
        """
        self.fs = fs
        self.index_file = index_file
        self.cache_max_age = cache_max_age
        self.enable_directory_listing = enable_directory_listing

    def __call__(self, writer: ResponseWriter, request: HTTPRequest) -> None:
        self.serve(writer, request)

    def serve(self, writer: ResponseWriter, request: HTTPRequest) -> None:
        """Serve the file named by request.path."""
        name = clean_path(request.path)

        try:
            self._serve_path(writer, request, name)
        except OSError as e:
            status = status_for_error(e)
            if status != HTTPStatus.NOT_FOUND:
                logger.warning(f"Error serving {name}: {e}")
            status_respond(writer, status)

    def _serve_path(self, writer: ResponseWriter, request: HTTPRequest, name: str) -> None:
        with self.fs.open(name) as file:
            info = file.stat()

            if not info.is_dir:
                serve_content(
                    writer, request, info.name, info.mod_time, file,
                    cache_max_age=self.cache_max_age,
                )
                return

            if self._serve_index(writer, request, name):
                return

            if self.enable_directory_listing:
                self._directory_listing(writer, request, file.readdir())
                return

        status_respond(writer, HTTPStatus.NOT_FOUND)

    def _serve_index(self, writer: ResponseWriter, request: HTTPRequest, directory: str) -> bool:
        """Serve directory/index_file if it exists. Other errors propagate."""
        try:
            index = self.fs.open(posixpath.join(directory, self.index_file))
        except OSError as e:
            if classify_error(e) is ErrorKind.NOT_FOUND:
                return False
            raise

        with index:
            info = index.stat()
            if info.is_dir:
                return False
            serve_content(
                writer, request, info.name, info.mod_time, index,
                cache_max_age=self.cache_max_age,
            )
            return True

    def _directory_listing(
        self,
        writer: ResponseWriter,
        request: HTTPRequest,
        entries: List[FileInfo],
    ) -> None:
        """
        Minimal HTML index of a directory.

        Directory listing exposes the structure of your files. Only enable
        it for a public file repository.
        """
        items = []
        if clean_path(request.path) != "/":
            items.append('<li><a href="../">../</a></li>')

        for entry in entries:
            name = entry.name + "/" if entry.is_dir else entry.name
            escaped = html.escape(name)
            items.append(f'<li><a href="{escaped}">{escaped}</a></li>')

        title = html.escape(request.path)
        page = (
            "<!DOCTYPE html>\n"
            f"<html><head><title>Index of {title}</title></head>\n"
            f"<body><h1>Index of {title}</h1>\n"
            f"<ul>{''.join(items)}</ul>\n"
            "</body></html>\n"
        ).encode("utf-8")

        writer.headers["Content-Type"] = "text/html; charset=utf-8"
        writer.headers["Content-Length"] = str(len(page))
        writer.write_header(HTTPStatus.OK)
        if not request.is_head:
            writer.write(page)


# =============================================================================
# CONTENT SERVING
# =============================================================================

def make_etag(mod_time: Optional[datetime], size: int) -> str:
    """Weak-enough fingerprint: modification second and size."""
    stamp = int(mod_time.timestamp()) if mod_time is not None else 0
    return f'"{stamp}-{size}"'


def serve_content(
    writer: ResponseWriter,
    request: HTTPRequest,
    name: str,
    mod_time: Optional[datetime],
    file: File,
    cache_max_age: Optional[int] = None,
) -> None:
    """
    Write `file` as the response to `request`.

    Content-Type comes from `name` unless the writer already has one. The
    selected bytes are read before the status is written, so a read error
    still leaves the writer uncommitted.

    Args:
        writer: Where the response goes.
        request: Used for method and conditional/range headers.
        name: Display name; only its extension matters.
        mod_time: Last-Modified value, None to omit.
        file: Open file positioned anywhere.
        cache_max_age: Cache-Control max-age, None to omit.
    """
    size = file.stat().size
    headers = writer.headers

    if "Content-Type" not in headers:
        headers["Content-Type"] = get_content_type(name)

    etag = headers.setdefault("ETag", make_etag(mod_time, size))
    if mod_time is not None:
        headers["Last-Modified"] = format_http_date(mod_time)
    if cache_max_age is not None:
        headers["Cache-Control"] = f"public, max-age={cache_max_age}"
    headers["Accept-Ranges"] = "bytes"

    if _not_modified(request, etag, mod_time):
        headers.pop("Content-Type", None)
        headers.pop("Content-Length", None)
        writer.write_header(HTTPStatus.NOT_MODIFIED)
        return

    status = HTTPStatus.OK
    start, length = 0, size

    range_header = request.get_header("range")
    if range_header and _if_range_matches(request, etag, mod_time):
        try:
            byte_range = parse_range(range_header, size)
        except RangeNotSatisfiable:
            headers["Content-Range"] = f"bytes */{size}"
            status_respond(writer, HTTPStatus.RANGE_NOT_SATISFIABLE)
            return

        if byte_range is not None:
            start, length = byte_range
            status = HTTPStatus.PARTIAL_CONTENT
            headers["Content-Range"] = f"bytes {start}-{start + length - 1}/{size}"

    body = b""
    if not request.is_head and length > 0:
        file.seek(start)
        body = file.read(length)

    headers["Content-Length"] = str(length)
    writer.write_header(status)
    if body:
        writer.write(body)


def parse_range(header: str, size: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single-range "bytes=" header against a file of `size` bytes.

    Returns:
        (start, length), or None when the header should be ignored
        (other units, multiple ranges, malformed syntax).

    Raises:
        RangeNotSatisfiable: The range lies entirely outside the file.
    """
    if not header.startswith("bytes="):
        return None

    byte_range = header[len("bytes="):].strip()
    if "," in byte_range:
        return None

    first, sep, last = byte_range.partition("-")
    first, last = first.strip(), last.strip()
    if not sep or (first and not first.isdigit()) or (last and not last.isdigit()):
        return None

    if not first:
        # Suffix range: the last N bytes
        if not last:
            return None
        suffix = int(last)
        if suffix == 0 or size == 0:
            raise RangeNotSatisfiable(header)
        suffix = min(suffix, size)
        return size - suffix, suffix

    start = int(first)
    if start >= size:
        raise RangeNotSatisfiable(header)

    end = size - 1 if not last else min(int(last), size - 1)
    if end < start:
        raise RangeNotSatisfiable(header)

    return start, end - start + 1


def _not_modified(request: HTTPRequest, etag: str, mod_time: Optional[datetime]) -> bool:
    if request.method not in ("GET", "HEAD"):
        return False

    if_none_match = request.get_header("if-none-match")
    if if_none_match:
        tags = [tag.strip() for tag in if_none_match.split(",")]
        return "*" in tags or etag in tags or f"W/{etag}" in tags

    if mod_time is None:
        return False
    since = parse_http_date(request.get_header("if-modified-since"))
    return since is not None and int(mod_time.timestamp()) <= int(since.timestamp())


def _if_range_matches(request: HTTPRequest, etag: str, mod_time: Optional[datetime]) -> bool:
    value = request.get_header("if-range")
    if not value:
        return True
    if value.startswith('"'):
        return value == etag

    since = parse_http_date(value)
    return (
        since is not None
        and mod_time is not None
        and int(mod_time.timestamp()) == int(since.timestamp())
    )
