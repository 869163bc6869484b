"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables in one dataclass, validated once at startup.

Sources, lowest to highest priority:

    1. Defaults            ServerConfig()
    2. Environment         ServerConfig.from_env()   (TRYFILES_* variables)
    3. Command line        python -m tryfiles ...    (see __main__.py)

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_list(name: str) -> Optional[List[str]]:
    value = os.getenv(name)
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class ServerConfig:
    """
    Configuration for the try-files server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK      host, port, backlog, buffer_size, timeout
    HTTP         keep_alive, keep_alive_timeout, max_request_size
    THREADING    min_workers, max_workers
    TRY-FILES    root_dir, try_files, strip_prefix, strip_suffix,
                 pool_size, cache_max_age
    LOGGING      log_level
    =========================================================================
    """

    # =========================================================================
    # NETWORK
    # =========================================================================

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" listens on all interfaces."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128
    """Accept queue length."""

    buffer_size: int = 8192
    """recv() chunk size in bytes."""

    timeout: Optional[float] = 30.0
    """Socket timeout for the first request on a connection."""

    # =========================================================================
    # HTTP
    # =========================================================================

    keep_alive: bool = True
    """Reuse connections for several requests."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a keep-alive connection is closed."""

    max_request_size: int = 1024 * 1024
    """Largest accepted request (headers and body), in bytes."""

    # =========================================================================
    # THREADING
    # =========================================================================

    min_workers: int = 4
    max_workers: int = 16

    # =========================================================================
    # TRY-FILES
    # =========================================================================

    root_dir: Optional[str] = None
    """
    Directory to serve. None serves nothing: every request goes to the
    not-found handler.
    """

    try_files: List[str] = field(default_factory=lambda: ["/index.html"])
    """Fallback candidates, tried in order when the requested file is missing."""

    strip_prefix: Optional[str] = None
    """Removed from the request path before lookup, e.g. "/app"."""

    strip_suffix: Optional[str] = None
    """Removed from the end of the request path before lookup, e.g. ".html"."""

    pool_size: int = 0
    """ShadowWriters allocated at startup. 0 allocates on demand."""

    cache_max_age: Optional[int] = 3600
    """Cache-Control max-age for files served directly. None omits the header."""

    # =========================================================================
    # LOGGING / IDENTITY
    # =========================================================================

    log_level: str = "INFO"
    """DEBUG shows every fallback decision."""

    server_name: str = "tryfiles/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TRYFILES_HOST           Bind address (default: 127.0.0.1)
        TRYFILES_PORT           Port (default: 8080)
        TRYFILES_WORKERS        Max worker threads (default: 16)
        TRYFILES_TIMEOUT        Request timeout in seconds (default: 30)
        TRYFILES_ROOT           Directory to serve (default: none)
        TRYFILES_TRY            Comma-separated fallbacks (default: /index.html)
        TRYFILES_STRIP_PREFIX   Path prefix to strip
        TRYFILES_STRIP_SUFFIX   Path suffix to strip
        TRYFILES_POOL_SIZE      ShadowWriters to pre-allocate (default: 0)
        TRYFILES_LOG_LEVEL      Logging level (default: INFO)

        =====================================================================
        """
        defaults = cls()
        try_files = _env_list("TRYFILES_TRY")

        return cls(
            host=os.getenv("TRYFILES_HOST", defaults.host),
            port=int(os.getenv("TRYFILES_PORT", str(defaults.port))),
            max_workers=int(os.getenv("TRYFILES_WORKERS", str(defaults.max_workers))),
            timeout=float(os.getenv("TRYFILES_TIMEOUT", str(defaults.timeout))),
            root_dir=os.getenv("TRYFILES_ROOT"),
            try_files=try_files if try_files is not None else defaults.try_files,
            strip_prefix=os.getenv("TRYFILES_STRIP_PREFIX"),
            strip_suffix=os.getenv("TRYFILES_STRIP_SUFFIX"),
            pool_size=int(os.getenv("TRYFILES_POOL_SIZE", str(defaults.pool_size))),
            log_level=os.getenv("TRYFILES_LOG_LEVEL", defaults.log_level),
        )

    def validate(self) -> None:
        """
        Fail fast on bad values.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.pool_size < 0:
            raise ValueError("pool_size must be >= 0")

        if self.cache_max_age is not None and self.cache_max_age < 0:
            raise ValueError("cache_max_age must be >= 0")

        if self.root_dir is not None and not os.path.isdir(self.root_dir):
            raise ValueError(f"root_dir is not a directory: {self.root_dir}")

        for name in self.try_files:
            if not name.startswith("/"):
                raise ValueError(f"try_files entries must start with '/': {name!r}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {self.log_level}")
