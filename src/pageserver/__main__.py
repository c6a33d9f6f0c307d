"""
=============================================================================
PAGESERVER CLI ENTRY POINT
=============================================================================

    # Serve ./pages on 127.0.0.1:7878 with 4 workers
    python -m pageserver

    # Overrides (all optional)
    python -m pageserver --port 8000 --workers 8 --pages ./site
    python -m pageserver --log-level DEBUG

Exit status:
    0  clean shutdown (SIGTERM, SIGINT)
    1  startup failure (bad option, pages directory missing or unreadable,
       address already in use)

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, LOG_LEVELS
from .http.router import RouteIndexError
from .server import PageServer


def build_parser() -> argparse.ArgumentParser:
    defaults = ServerConfig()

    parser = argparse.ArgumentParser(
        prog="pageserver",
        description="Serve the pages/ directory over HTTP/1.1 with a fixed thread pool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pageserver                      # 127.0.0.1:7878, 4 workers, ./pages
  python -m pageserver --port 8000          # Custom port
  python -m pageserver --workers 8          # 8 worker threads
  python -m pageserver --pages ./site       # Different pages directory
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # SERVER ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.workers,
        help=f"Number of worker threads (default: {defaults.workers})"
    )

    parser.add_argument(
        "--pages", "-s",
        default=defaults.pages_dir,
        help=f"Pages directory, relative to the working directory or absolute (default: {defaults.pages_dir})"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=list(LOG_LEVELS),
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"pageserver {__version__}"
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse arguments, build the server, run it.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        workers=args.workers,
        pages_dir=args.pages,
        log_level=args.log_level,
    )

    try:
        server = PageServer(config)
        server.run()
    except (ValueError, RouteIndexError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
