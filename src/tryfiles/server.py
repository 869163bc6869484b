"""
=============================================================================
TRY-FILES HTTP SERVER
=============================================================================

Puts the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer.accept() ──► ThreadPool.submit(_process_connection)  │
    │                                        │                             │
    │                      ┌─────────────────┘                             │
    │                      ▼                                               │
    │   while keep-alive:                                                  │
    │       raw = conn.read_request()                                      │
    │       request = RequestParser.parse(raw)      (400/405/505 on error) │
    │       writer = BufferedResponseWriter()                              │
    │       handler(writer, request)                (500 on exception)     │
    │       conn.send_response(writer.to_response().to_bytes())            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The handler is any writer-style callable. Without one, a TryFilesHandler
is built from the configuration.

=============================================================================
USAGE
=============================================================================

    config = ServerConfig(port=3000, root_dir="./dist", strip_prefix="/app")
    HTTPServer(config).run()

    # or with a hand-built handler
    handler = TryFilesHandler().directory("./docs", "/404.html")
    HTTPServer(ServerConfig(port=3000), handler).run()

=============================================================================
"""

import logging
from functools import partial
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool, RequestTooLarge
from .fs import DirFileSystem
from .handlers import rewrite as rewriters
from .handlers.static import FileServer
from .handlers.tryfiles import TryFilesHandler
from .http import (
    BufferedResponseWriter,
    Handler,
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    ResponseBuilder,
)


logger = logging.getLogger(__name__)


def build_handler(config: ServerConfig) -> TryFilesHandler:
    """
    TryFilesHandler configured from `config`, with its writer pool warmed
    up to `config.pool_size`.
    """
    handler = TryFilesHandler(
        try_files=tuple(config.try_files),
        file_server_factory=partial(FileServer, cache_max_age=config.cache_max_age),
    )

    if config.root_dir is not None:
        handler.filesystem(DirFileSystem(config.root_dir))

    if config.strip_prefix and config.strip_suffix:
        prefix = rewriters.strip_prefix(config.strip_prefix)
        suffix = rewriters.strip_suffix(config.strip_suffix)
        handler.rewrite(lambda request: suffix(prefix(request)))
    elif config.strip_prefix:
        handler.strip_prefix(config.strip_prefix)
    elif config.strip_suffix:
        handler.strip_suffix(config.strip_suffix)

    if config.pool_size:
        handler.pool.warm_up(config.pool_size)

    return handler


class HTTPServer:
    """
    Multi-threaded HTTP/1.1 server for a single writer-style handler.

    =========================================================================
    FEATURES
    =========================================================================

    - Thread pool with bounded queue (503 when overloaded)
    - Keep-alive connections
    - HEAD handled once for every handler (body dropped, length kept)
    - Graceful shutdown on SIGINT/SIGTERM or shutdown()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None, handler: Optional[Handler] = None):
        """
        Args:
            config: Server configuration. Defaults are used if not provided.
            handler: Request handler. Built from `config` if not provided.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self.handler: Handler = handler if handler is not None else build_handler(self.config)
        self._running = False

    @property
    def address(self):
        """Bound (host, port); see SocketServer.address."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None, banner: bool = True):
        """
        Serve until shutdown() or a signal (blocking).

        Args:
            host: Override config host.
            port: Override config port.
            banner: Print the startup banner.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._running = True
        self._thread_pool.start()

        logger.info(f"Starting try-files server on {self.config.host}:{self.config.port}")
        if banner:
            self._print_startup_banner()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask a running server to stop. run() returns once it has."""
        self._socket_server.shutdown()

    def _print_startup_banner(self):
        root = self.config.root_dir or "(none)"
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"  {self.config.server_name} running")
        print(f"  http://{self.config.host}:{self.config.port}")
        print(f"  root: {root}")
        print(f"  fallbacks: {', '.join(self.config.try_files) or '(none)'}")
        print(f"  workers: {self.config.min_workers}-{self.config.max_workers} threads")
        print("  Press Ctrl+C to stop")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("tryfiles").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Queue a connection for a worker; 503 if the queue is full."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
            block=False,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop for one connection (runs in a worker thread)."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        self._send_error(conn, e.status_code, str(e))
                        break

                    response = self.handle_request(request)
                    keep_alive = request.is_keep_alive and self.config.keep_alive

                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive",
                            f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    if not conn.send_response(response.to_bytes(self.config.server_name)):
                        break

                    if not keep_alive:
                        break

                    conn.set_keep_alive()

                except RequestTooLarge:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, "Request too large")
                    break

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break

                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run the handler for one parsed request and collect its response.

        A handler exception becomes a JSON 500. For HEAD the body is
        dropped but its length is kept in Content-Length.
        """
        writer = BufferedResponseWriter()

        try:
            self.handler(writer, request)
            response = writer.to_response()
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            response = (ResponseBuilder()
                .status(HTTPStatus.INTERNAL_SERVER_ERROR)
                .json({"error": "Internal Server Error"})
                .build())

        if request.is_head and response.body:
            response.headers.setdefault("Content-Length", str(len(response.body)))
            response.body = b""

        return response

    def _send_error(self, conn: Connection, status: int, message: str):
        """Error response for failures before a handler runs."""
        response = (ResponseBuilder()
            .status(status)
            .json({"error": message})
            .close_connection()
            .build())

        conn.send_response(response.to_bytes(self.config.server_name))


def create_app(config: Optional[ServerConfig] = None, handler: Optional[Handler] = None) -> HTTPServer:
    """
    Factory for a server instance.

    Example:
        app = create_app(ServerConfig(port=3000, root_dir="./dist"))
        app.run()
    """
    return HTTPServer(config, handler)
