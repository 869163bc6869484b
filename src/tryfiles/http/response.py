"""
=============================================================================
HTTP RESPONSES AND RESPONSE WRITERS
=============================================================================

Handlers in this package do not RETURN responses, they WRITE them:

    def handler(writer: ResponseWriter, request: HTTPRequest) -> None:
        writer.headers["Content-Type"] = "text/plain; charset=utf-8"
        writer.write_header(200)
        writer.write(b"hello")

This is what makes try-files possible. A writer can be WRAPPED, and the
wrapper decides what reaches the real writer (see core/shadow.py).

=============================================================================
THE WRITER CONTRACT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    RESPONSE WRITER LIFECYCLE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   UNCOMMITTED ── write_header(code) ──►  COMMITTED(code)            │
    │        │                                     │                       │
    │        │ headers[...] = ...                  │ write(body bytes)     │
    │        │ (freely editable)                   │ (headers frozen)      │
    │        │                                     │                       │
    │        └──── write(data) ── implicit 200 ───►┘                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    1. Headers can be set and DELETED until the status is committed
    2. write_header() commits the status and snapshots the headers
    3. A second write_header() is ignored (logged as superfluous)
    4. write() before write_header() commits 200 OK

BufferedResponseWriter keeps everything in memory and turns it into an
HTTPResponse for the connection to serialize.

=============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional, Dict, Any, Union
import json
import logging

from .request import HTTPRequest
from .status_codes import HTTPStatus, status_phrase


logger = logging.getLogger(__name__)


@dataclass
class HTTPResponse:
    """
    A complete HTTP response ready to be serialized.

        HTTPResponse(status=200, headers={...}, body=b"...")
            │
            └── to_bytes() ──► b"HTTP/1.1 200 OK\\r\\n...\\r\\n\\r\\n..."
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {status_phrase(self.status)}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "tryfiles/1.0") -> bytes:
        """
        Serialize for socket.sendall().

        Content-Length, Date and Server are added when missing. A HEAD
        response keeps the Content-Length its handler set, with no body.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for responses produced outside a handler
    (parse errors, overload, crashes in the connection loop).

        response = (ResponseBuilder()
            .status(HTTPStatus.BAD_REQUEST)
            .json({"error": "Invalid request line"})
            .close_connection()
            .build())
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# RESPONSE WRITERS
# =============================================================================

class ResponseWriter(ABC):
    """
    Where a handler writes its response.

    Header names are used in canonical form ("Content-Type",
    "Last-Modified"); the header map is a plain dict.
    """

    @property
    @abstractmethod
    def headers(self) -> Dict[str, str]:
        """Mutable header map. Edits after write_header() have no effect."""

    @abstractmethod
    def write_header(self, status: int) -> None:
        """Commit the status code (and the current headers)."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write body bytes, committing 200 OK first if needed."""


class BufferedResponseWriter(ResponseWriter):
    """
    In-memory ResponseWriter used by the server's connection loop (and by
    tests as the "real" writer).

        writer = BufferedResponseWriter()
        handler(writer, request)
        conn.send_response(writer.to_response().to_bytes())
    """

    def __init__(self):
        self._headers: Dict[str, str] = {}
        self._committed_headers: Optional[Dict[str, str]] = None
        self._body = bytearray()
        self.status: Optional[int] = None

    @property
    def headers(self) -> Dict[str, str]:
        return self._headers

    @property
    def committed(self) -> bool:
        """True once a status has been written (explicitly or by write())."""
        return self.status is not None

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def write_header(self, status: int) -> None:
        if self.committed:
            logger.warning(
                f"Superfluous write_header({status}), status already {self.status}"
            )
            return
        if not 100 <= status <= 999:
            raise ValueError(f"Invalid status code: {status}")

        self.status = status
        self._committed_headers = dict(self._headers)

    def write(self, data: bytes) -> int:
        if not self.committed:
            self.write_header(HTTPStatus.OK)
        self._body += data
        return len(data)

    def to_response(self) -> HTTPResponse:
        """
        Snapshot what was written as an HTTPResponse.

        A handler that wrote nothing at all produces an empty 200, the same
        as an HTTP server whose handler returns without writing.
        """
        if not self.committed:
            return HTTPResponse(status=HTTPStatus.OK, headers=dict(self._headers))
        return HTTPResponse(
            status=self.status,
            headers=dict(self._committed_headers),
            body=bytes(self._body),
        )


# A handler writes a response for a request. TryFilesHandler, the default
# not-found handler and any terminal handler a user plugs in all share it.
Handler = Callable[[ResponseWriter, HTTPRequest], None]


def error(writer: ResponseWriter, message: str, status: int) -> None:
    """
    Reply with a plain-text error.

    Stale Content-Length is dropped and sniffing is disabled, so the
    message is shown as text whatever the request path looked like.
    """
    headers = writer.headers
    headers.pop("Content-Length", None)
    headers["Content-Type"] = "text/plain; charset=utf-8"
    headers["X-Content-Type-Options"] = "nosniff"
    writer.write_header(status)
    writer.write(message.encode("utf-8"))


def status_respond(writer: ResponseWriter, status: HTTPStatus) -> None:
    """Plain-text "<code> <lowercase phrase>" response, e.g. "403 forbidden"."""
    error(writer, status.text, status)


def not_found_handler(writer: ResponseWriter, request: HTTPRequest) -> None:
    """Default terminal handler: 404 with body "404 not found"."""
    status_respond(writer, HTTPStatus.NOT_FOUND)


# =============================================================================
# HTTP DATES
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231), always in GMT.

    Example: Thu, 15 Jan 2026 12:30:45 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def parse_http_date(value: str) -> Optional[datetime]:
    """
    Parse an HTTP-date header value into an aware UTC datetime.

    Returns None for anything unparseable; conditional headers with a bad
    date are ignored rather than rejected.
    """
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
