"""
=============================================================================
FILE SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:8080
    python -m fileserver

    # Another directory, another port
    python -m fileserver --root ./public --port 3000

    # Cap concurrency at 8 worker threads
    python -m fileserver --workers 8

Environment variables (FILESERVER_*) provide the defaults; flags override
them. See ServerConfig.from_env() for the list.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import FileServer
from .config import ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyfileserver",
        description="Minimal HTTP/1.1 file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m fileserver                        # Serve . on 127.0.0.1:8080
  python -m fileserver --root ./public        # Serve another directory
  python -m fileserver --port 3000            # Custom port
  python -m fileserver --workers 8            # Bounded worker pool
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

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout,
        help="Client socket timeout in seconds (default: none)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.root,
        help=f"Directory to serve (default: {defaults.root})"
    )

    parser.add_argument(
        "--allow-traversal",
        action="store_true",
        help="Do not confine requests to the served root"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE / LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help="Serve from a pool of this many threads (default: one thread per connection)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"pyfileserver {__version__}"
    )

    return parser


def parse_config(argv=None) -> ServerConfig:
    """Build a ServerConfig from the environment, then command-line flags."""
    defaults = ServerConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    return ServerConfig(
        host=args.host,
        port=args.port,
        root=args.root,
        timeout=args.timeout,
        max_workers=args.workers,
        confine_to_root=not args.allow_traversal,
        log_level=args.log_level,
    )


def main(argv=None):
    try:
        server = FileServer(parse_config(argv))
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
