"""
Unit tests for the file server and serve_content.
"""

import pytest

from tryfiles.fs import MemoryFileSystem
from tryfiles.handlers import FileServer, RangeNotSatisfiable, parse_range
from tryfiles.http import HTTPStatus


class TestFileServer:
    """Tests for FileServer."""

    def test_serves_file(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/assets/style.css"))

        assert writer.status == 200
        assert writer.body == b"body{}"
        assert writer.headers["Content-Type"] == "text/css; charset=utf-8"
        assert writer.headers["Content-Length"] == "6"
        assert writer.headers["ETag"] == '"1735732800-6"'
        assert writer.headers["Last-Modified"] == "Wed, 01 Jan 2025 12:00:00 GMT"
        assert writer.headers["Cache-Control"] == "public, max-age=3600"
        assert writer.headers["Accept-Ranges"] == "bytes"

    def test_missing_file_is_404(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/nope.txt"))

        assert writer.status == 404
        assert writer.body == b"404 not found"
        assert writer.headers["X-Content-Type-Options"] == "nosniff"

    def test_directory_index(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/"))

        assert writer.status == 200
        assert writer.body == b"<app/>"

    def test_directory_without_index_is_404(self, serve, make_request):
        fs = MemoryFileSystem({"/images/a.png": b"a"})

        writer = serve(FileServer(fs), make_request("/images"))

        assert writer.status == 404

    def test_directory_listing(self, serve, make_request):
        fs = MemoryFileSystem({"/files/a.txt": "a", "/files/<b>.txt": "b", "/files/sub/c.txt": "c"})

        writer = serve(FileServer(fs, enable_directory_listing=True), make_request("/files"))

        assert writer.status == 200
        assert writer.headers["Content-Type"] == "text/html; charset=utf-8"
        assert b'<a href="a.txt">a.txt</a>' in writer.body
        assert b"&lt;b&gt;.txt" in writer.body
        assert b'<a href="sub/">sub/</a>' in writer.body
        assert b'href="../"' in writer.body

    def test_path_is_cleaned(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/assets/./x/../app.js"))

        assert writer.status == 200
        assert writer.body == b"console.log('app')"

    def test_no_cache_header(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs, cache_max_age=None), make_request("/index.html"))

        assert "Cache-Control" not in writer.headers

    def test_head(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/index.html", method="HEAD"))

        assert writer.status == 200
        assert writer.body == b""
        assert writer.headers["Content-Length"] == "6"

    def test_disk_file(self, serve, make_request, site_dir):
        from tryfiles.fs import DirFileSystem

        writer = serve(FileServer(DirFileSystem(site_dir)), make_request("/docs/"))

        assert writer.status == 200
        assert writer.body == b"<docs/>"


class TestConditionalRequests:
    """If-None-Match / If-Modified-Since."""

    def test_etag_match(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/index.html", if_none_match='"1735732800-6"'))

        assert writer.status == HTTPStatus.NOT_MODIFIED
        assert writer.body == b""
        assert "Content-Type" not in writer.headers

    def test_etag_mismatch(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/index.html", if_none_match='"other"'))

        assert writer.status == 200

    def test_if_modified_since(self, serve, make_request, spa_fs):
        fresh = serve(FileServer(spa_fs), make_request(
            "/index.html", if_modified_since="Wed, 01 Jan 2025 12:00:00 GMT"))
        stale = serve(FileServer(spa_fs), make_request(
            "/index.html", if_modified_since="Tue, 31 Dec 2024 12:00:00 GMT"))

        assert fresh.status == 304
        assert stale.status == 200

    def test_bad_date_is_ignored(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/index.html", if_modified_since="yesterday"))

        assert writer.status == 200


class TestRanges:
    """Byte range requests."""

    def test_partial_content(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/assets/app.js", range="bytes=0-6"))

        assert writer.status == 206
        assert writer.body == b"console"
        assert writer.headers["Content-Range"] == "bytes 0-6/18"
        assert writer.headers["Content-Length"] == "7"

    def test_unsatisfiable(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request("/assets/app.js", range="bytes=100-"))

        assert writer.status == 416
        assert writer.headers["Content-Range"] == "bytes */18"

    def test_stale_if_range_gets_full_file(self, serve, make_request, spa_fs):
        writer = serve(FileServer(spa_fs), make_request(
            "/assets/app.js", range="bytes=0-6", if_range='"old"'))

        assert writer.status == 200
        assert writer.body == b"console.log('app')"

    @pytest.mark.parametrize("header,expected", [
        ("bytes=0-99", (0, 100)),
        ("bytes=100-", (100, 900)),
        ("bytes=-100", (900, 100)),
        ("bytes=-5000", (0, 1000)),
        ("bytes=990-5000", (990, 10)),
        ("bytes=0-1,5-6", None),
        ("items=0-1", None),
        ("bytes=abc", None),
    ])
    def test_parse_range(self, header, expected):
        assert parse_range(header, 1000) == expected

    @pytest.mark.parametrize("header", ["bytes=1000-", "bytes=5-2", "bytes=-0"])
    def test_parse_range_unsatisfiable(self, header):
        with pytest.raises(RangeNotSatisfiable):
            parse_range(header, 1000)
