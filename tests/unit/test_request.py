"""
Unit tests for HTTP request parsing.
"""

import pytest

from tryfiles.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request for a static asset."""
    return (
        b"GET /app/assets/app.js?v=3&v=4 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/app/assets/app.js"
        assert request.raw_path == "/app/assets/app.js"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parse_request(sample_get_request)

        assert request.host == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "*/*"
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request: bytes):
        """Test query parameter parsing."""
        request = parse_request(sample_get_request)

        assert request.query_string == "v=3&v=4"
        assert request.query_params == {"v": ["3", "4"]}
        assert request.get_query("v") == "3"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "default") == "default"

    def test_percent_encoded_path(self):
        """The decoded path and the path as sent are both kept."""
        raw = b"GET /docs/my%20page.html?q=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/docs/my page.html"
        assert request.raw_path == "/docs/my%20page.html"
        assert request.get_query("q") == "hello world"

    def test_absolute_uri(self):
        raw = b"GET http://example.com/index.html HTTP/1.1\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/index.html"

    def test_parse_head(self):
        request = parse_request(b"HEAD /index.html HTTP/1.1\r\n\r\n")

        assert request.is_head

    def test_parse_post_with_body(self):
        """The body is exactly Content-Length bytes."""
        raw = (
            b"POST /upload HTTP/1.1\r\n"
            b"Content-Length: 9\r\n"
            b"\r\n"
            b"test body"
        )
        request = parse_request(raw)

        assert request.method == "POST"
        assert request.body == b"test body"

    def test_short_body(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 50\r\n\r\nshort"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_invalid_content_length(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: lots\r\n\r\n"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_parse_invalid_method(self):
        """Test that invalid methods are rejected."""
        raw = b"INVALID /path HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        """Test handling of malformed request line."""
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_unsupported_version(self):
        raw = b"GET / HTTP/2.0\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 505

    def test_no_header_terminator(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_missing_headers(self):
        """Test parsing request with no headers."""
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0

    @pytest.mark.parametrize("target", [
        b"/../../../etc/passwd",
        b"/assets/%2e%2e/%2e%2e/secret",
    ])
    def test_parse_path_traversal_blocked(self, target):
        """Test that path traversal attempts are blocked."""
        raw = b"GET " + target + b" HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400
        assert "path" in str(exc_info.value).lower()

    def test_dots_inside_names_are_fine(self):
        request = parse_request(b"GET /v1..2/app..js HTTP/1.1\r\n\r\n")

        assert request.path == "/v1..2/app..js"

    def test_parse_request_too_large(self):
        """Test that oversized requests are rejected."""
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_http_version_parsing(self):
        """Test HTTP/1.0 and HTTP/1.1 version handling."""
        request_10 = parse_request(b"GET / HTTP/1.0\r\nHost: test\r\n\r\n")
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        request_10_ka = parse_request(b"GET / HTTP/1.0\r\nConnection: keep-alive\r\n\r\n")
        assert request_10_ka.is_keep_alive is True

        request_11 = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request_11.version == "HTTP/1.1"
        assert request_11.is_keep_alive is True

        request_11_close = parse_request(b"GET / HTTP/1.1\r\nConnection: close\r\n\r\n")
        assert request_11_close.is_keep_alive is False

    def test_case_insensitive_headers(self):
        """Test that header names are case-insensitive."""
        raw = b"GET / HTTP/1.1\r\nIF-NONE-MATCH: \"abc\"\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("If-None-Match") == '"abc"'
        assert request.get_header("if-none-match") == '"abc"'

    def test_repeated_and_folded_headers(self):
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"Accept: text/html\r\n"
            b"Accept: text/plain\r\n"
            b"X-Long: first\r\n"
            b"  second\r\n"
            b"\r\n"
        )
        request = parse_request(raw)

        assert request.headers["accept"] == "text/html, text/plain"
        assert request.headers["x-long"] == "first second"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        """Test get_header with default value."""
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_raw_path_defaults_to_path(self):
        request = HTTPRequest(method="GET", path="/a b")

        assert request.raw_path == "/a b"
