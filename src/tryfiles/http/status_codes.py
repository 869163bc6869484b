"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes used by the try-files handler, the default file server and the
connection loop, with their RFC 7231 / RFC 7233 reason phrases.

=============================================================================
THE CODES THAT MATTER HERE
=============================================================================

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ File (or fallback candidate) served in full               │
    │  206   │ Single byte range served                                  │
    │  304   │ Conditional request, client copy is still fresh           │
    │  403   │ File exists but cannot be opened (permission denied)      │
    │  404   │ Nothing at this path; triggers the fallback walk          │
    │  416   │ Byte range outside the file                               │
    │  500   │ Any other filesystem or handler failure                   │
    └────────┴───────────────────────────────────────────────────────────┘

Plain-text error bodies are "<code> <lowercase phrase>", e.g. "404 not found",
which is why `HTTPStatus.text` exists.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
        >>> HTTPStatus.NOT_FOUND.text
        '404 not found'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201
    NO_CONTENT = 204
    PARTIAL_CONTENT = 206               # Range request fulfilled

    # 3xx REDIRECTION
    MOVED_PERMANENTLY = 301
    FOUND = 302
    NOT_MODIFIED = 304                  # Cached version is still valid

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PRECONDITION_FAILED = 412
    PAYLOAD_TOO_LARGE = 413
    RANGE_NOT_SATISFIABLE = 416

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── phrase
                      └───────── status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def text(self) -> str:
        """Plain-text error body: code followed by the lowercase phrase."""
        return f"{int(self)} {self.phrase.lower()}"

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",

    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.NOT_MODIFIED: "Not Modified",

    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PRECONDITION_FAILED: "Precondition Failed",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",

    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def status_phrase(code: int) -> str:
    """
    Reason phrase for any integer status code.

    Handlers may pass plain ints to write_header(); unknown codes still get
    a status line.
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
