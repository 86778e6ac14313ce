"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Defaults (0.0.0.0:4221, /files/ disabled)
    python -m minihttpd

    # Serve and accept uploads under /tmp/files
    python -m minihttpd --directory /tmp/files

    # Loopback only, verbose
    python -m minihttpd --host 127.0.0.1 --log-level DEBUG

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import HTTPServer
from .config import ServerConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Minimal HTTP/1.1 server with echo and file endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttpd                          # Run with defaults
  python -m minihttpd --directory /tmp/files   # Enable /files/
  python -m minihttpd --port 8080 --workers 8
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=4221,
        help="Port to listen on (default: 4221)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        type=str,
        default=None,
        help="Root directory for /files/ (default: disabled)",
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=4,
        help="Worker threads started up front (default: 4)",
    )

    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Cap on worker threads; connections past it wait (default: no cap)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        directory=args.directory,
        min_workers=args.workers,
        max_workers=args.max_workers,
        log_level=args.log_level,
    )

    try:
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
