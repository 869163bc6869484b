"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m tryfiles ROOT [options]

Serves ROOT; a path that is not a file there gets the first existing
fallback (default /index.html), and only then a 404. TRYFILES_* environment
variables provide defaults and command line flags override them.

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tryfiles",
        description="Static file server with try-files fallbacks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tryfiles ./dist                          # SPA: unknown paths get /index.html
  python -m tryfiles ./site --try /404.html          # Custom not-found page
  python -m tryfiles ./dist --strip-prefix /app      # Mounted under /app
  python -m tryfiles ./docs --strip-suffix .html     # /about.html -> /about
  python -m tryfiles ./dist --try ""                 # No fallbacks at all
        """
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Directory to serve (default: $TRYFILES_ROOT)"
    )

    parser.add_argument(
        "--try", "-t",
        dest="try_files",
        action="append",
        metavar="PATH",
        help="Fallback file, repeatable, tried in order (default: /index.html). "
             "An empty value disables fallbacks."
    )

    parser.add_argument(
        "--strip-prefix",
        default=None,
        help="Remove this prefix from request paths before lookup"
    )

    parser.add_argument(
        "--strip-suffix",
        default=None,
        help="Remove this suffix from request paths before lookup"
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Minimum worker threads; the maximum is twice this (default: 4)"
    )

    parser.add_argument(
        "--pool-size",
        type=int,
        default=None,
        help="ShadowWriters to allocate at startup (default: 0)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tryfiles {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment defaults, overridden by whatever was given on the command line."""
    config = ServerConfig.from_env()

    if args.root is not None:
        config.root_dir = args.root
    if args.try_files is not None:
        config.try_files = [name for name in args.try_files if name]
    if args.strip_prefix is not None:
        config.strip_prefix = args.strip_prefix
    if args.strip_suffix is not None:
        config.strip_suffix = args.strip_suffix
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2
    if args.pool_size is not None:
        config.pool_size = args.pool_size
    if args.log_level is not None:
        config.log_level = args.log_level

    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"tryfiles: {e}", file=sys.stderr)
        return 1

    if config.root_dir is None:
        logging.getLogger("tryfiles").warning(
            "No root directory given, every request will be answered 404"
        )

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
