#!/usr/bin/env python3
"""CLI entry point for the photolens web API server."""

import argparse
import logging
import sys
from typing import List, Optional

from flask import Flask

from ..__main__ import setup_logging
from ..config import ConfigError
from ..vision.exceptions import VisionModelError
from .app import create_app

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5050


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="photolens-web",
        description="photolens Web API - local server for image analysis and privacy cleaning",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Serve on http://127.0.0.1:{DEFAULT_PORT}/api
  photolens-web

  # Different port and config file
  photolens-web --port 8080 --config /path/to/config.yaml
"""
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to run the server on (default: {DEFAULT_PORT})"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, localhost only)"
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to photolens config file (default: ~/.photolens/config.yaml)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser.parse_args(argv)


def describe_routes(app: Flask) -> List[str]:
    """One ``METHOD /path`` line per API route, sorted by path."""
    lines = []
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if not rule.rule.startswith("/api"):
            continue
        methods = sorted(rule.methods - {"HEAD", "OPTIONS"})
        lines.append(f"{', '.join(methods):<12} {rule.rule}")
    return lines


def print_banner(app: Flask, host: str, port: int) -> None:
    """Print startup banner with the available endpoints."""
    print()
    print("=" * 60)
    print(f"  photolens Web API  ({app.config['PHOTOLENS_SESSION'].orchestrator.vision.model_name})")
    print("=" * 60)
    print(f"  Listening on http://{host}:{port}")
    print()
    for line in describe_routes(app):
        print(f"    {line}")
    print()
    print("  Press Ctrl+C to stop the server")
    print("=" * 60)
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the photolens web server.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)
    setup_logging(args.verbose or args.debug)

    # Per-request access lines are noise unless debugging
    if not (args.verbose or args.debug):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    try:
        app = create_app(config_path=args.config, debug=args.debug)
    except ConfigError as e:
        print(f"\n✗ Configuration Error: {e}")
        return 2
    except VisionModelError as e:
        print(f"\n✗ Vision Model Error: {e}")
        return 3

    print_banner(app, args.host, args.port)

    try:
        # The reloader would start a second pipeline thread in the child
        app.run(
            host=args.host,
            port=args.port,
            debug=args.debug,
            threaded=True,
            use_reloader=False
        )
    except KeyboardInterrupt:
        print()
        print("Server stopped.")
    except OSError as e:
        logger.error(f"Failed to start server: {e}", exc_info=args.verbose)
        print(f"\n✗ Could not bind {args.host}:{args.port}: {e}")
        return 1
    finally:
        app.config["PHOTOLENS_SESSION"].shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(main())
