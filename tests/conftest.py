"""
pytest configuration and fixtures.
"""

import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tryfiles import HTTPServer, ServerConfig
from tryfiles.core import UnpooledWriterPool, WriterPool
from tryfiles.fs import MemoryFileSystem
from tryfiles.http import BufferedResponseWriter, HTTPRequest, Handler


MOD_TIME = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_request() -> Callable[..., HTTPRequest]:
    """Factory for parsed requests: make_request("/path", method="HEAD", range="bytes=0-1")."""
    def factory(path: str = "/", method: str = "GET", raw_path: str = "", **headers: str) -> HTTPRequest:
        return HTTPRequest(
            method=method,
            path=path,
            raw_path=raw_path,
            headers={name.replace("_", "-").lower(): value for name, value in headers.items()},
        )
    return factory


@pytest.fixture
def serve() -> Callable[[Handler, HTTPRequest], BufferedResponseWriter]:
    """Run a handler against a fresh BufferedResponseWriter and return the writer."""
    def run(handler: Handler, request: HTTPRequest) -> BufferedResponseWriter:
        writer = BufferedResponseWriter()
        handler(writer, request)
        return writer
    return run


@pytest.fixture
def spa_files() -> Dict[str, str]:
    """A small single-page app."""
    return {
        "/index.html": "<app/>",
        "/404.html": "<h1>missing</h1>",
        "/assets/app.js": "console.log('app')",
        "/assets/style.css": "body{}",
        "/docs/index.html": "<docs/>",
    }


@pytest.fixture
def spa_fs(spa_files: Dict[str, str]) -> MemoryFileSystem:
    return MemoryFileSystem(spa_files, mod_time=MOD_TIME)


@pytest.fixture
def pool() -> WriterPool:
    """A private pool so tests never share ShadowWriters through the default one."""
    return WriterPool()


@pytest.fixture
def unpooled() -> UnpooledWriterPool:
    return UnpooledWriterPool()


@pytest.fixture
def site_dir(tmp_path: Path, spa_files: Dict[str, str]) -> Path:
    """The SPA files written to a temporary directory."""
    for name, content in spa_files.items():
        target = tmp_path / name.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return tmp_path


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        log_level="WARNING",
    )


class ServerThread:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"banner": False},
            daemon=True
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def start_server() -> Generator[Callable[..., ServerThread], None, None]:
    """Factory for running servers; every server started is stopped at teardown."""
    started = []

    def start(config: ServerConfig, handler: Optional[Handler] = None) -> ServerThread:
        server_thread = ServerThread(HTTPServer(config, handler))
        server_thread.start()
        started.append(server_thread)
        return server_thread

    yield start

    for server_thread in started:
        server_thread.stop()


@pytest.fixture
def live_server(config: ServerConfig, site_dir: Path, start_server) -> ServerThread:
    """A running server for the SPA directory, on an OS-assigned port."""
    config.root_dir = str(site_dir)
    config.try_files = ["/index.html"]
    config.cache_max_age = 60

    return start_server(config)
