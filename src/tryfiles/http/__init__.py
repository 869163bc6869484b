"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       raw bytes → HTTPRequest (path + raw_path)          │
    │ response.py      ResponseWriter, BufferedResponseWriter,            │
    │                  HTTPResponse, error(), not_found_handler           │
    │ status_codes.py  HTTPStatus with .phrase and .text                  │
    │ mime_types.py    file name → Content-Type                           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ResponseWriter,
    BufferedResponseWriter,
    Handler,
    error,
    status_respond,
    not_found_handler,
    format_http_date,
    parse_http_date,
)
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type

__all__ = [
    # Requests
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Responses and writers
    "HTTPResponse",
    "ResponseBuilder",
    "ResponseWriter",
    "BufferedResponseWriter",
    "Handler",
    "error",
    "status_respond",
    "not_found_handler",
    "format_http_date",
    "parse_http_date",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_mime_type",
    "get_content_type",
]
