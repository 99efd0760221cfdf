"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

    python -m fileserver                      # serve . on 127.0.0.1:8080
    python -m fileserver --root ./data        # serve another directory
    python -m fileserver --port 3000          # custom port
    fileserver --log-format json              # installed console script

Environment variables (and a .env file) supply defaults; flags win.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .server import FileServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Build the argument parser, using defaults for unset flags."""
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Concurrent HTTP file server: GET/PUT/POST/DELETE map to file operations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m fileserver --root ./data
  curl -X POST -d '{"key1":"value1"}' http://127.0.0.1:8080/data
  curl http://127.0.0.1:8080/data
  curl -X DELETE http://127.0.0.1:8080/data
        """
    )

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
        "--root", "-r",
        default=defaults.root_dir,
        help=f"Working directory request paths are relative to (default: {defaults.root_dir})"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.min_workers,
        help=f"Worker threads kept ready; more are started on demand (default: {defaults.min_workers})"
    )
    parser.add_argument(
        "--confine-paths",
        action="store_true",
        default=defaults.confine_paths,
        help="Answer 404 for paths that resolve outside the working directory"
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"fileserver {__version__}"
    )

    return parser


def main(argv=None):
    """CLI entry point. Exits with status 1 if the server cannot start."""
    try:
        defaults = ServerConfig.from_env()
        args = build_parser(defaults).parse_args(argv)

        config = ServerConfig(
            host=args.host,
            port=args.port,
            root_dir=args.root,
            min_workers=args.workers,
            timeout=defaults.timeout,
            confine_paths=args.confine_paths,
            log_level=args.log_level,
            log_format=args.log_format,
        )

        server = FileServer(config)
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
