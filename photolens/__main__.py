#!/usr/bin/env python3
"""photolens - image metadata extraction, AI analysis and privacy cleaning.

This is the main CLI entry point for photolens. It processes one image:
extracts its EXIF metadata, asks the vision model for a structured
analysis, and optionally writes a metadata-free copy.

Usage:
    python -m photolens photo.jpg
    python -m photolens photo.jpg --json
    python -m photolens photo.jpg --clean ./out
    python -m photolens photo.png --clean ./out --format png
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ._version import __version__
from .assets import ImageAsset
from .config import ConfigManager, ConfigError
from .processing import ProcessingOrchestrator, ProcessingState
from .report import format_record
from .utils.exceptions import SanitizationError
from .utils.sanitize import SUPPORTED_FORMATS
from .vision.exceptions import VisionModelError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure console logging for the application.

    Args:
        verbose: If True, enable DEBUG level logging
        quiet: If True, only log errors
    """
    if quiet:
        level = logging.ERROR
    else:
        level = logging.DEBUG if verbose else logging.INFO

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Silence per-request logging of the HTTP client
    logging.getLogger("httpx").setLevel(logging.WARNING)


def add_file_logging(config: ConfigManager) -> None:
    """Also log to the file configured under ``logging.file``."""
    log_file = config.get("logging.file")
    if not log_file:
        return

    try:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
    except OSError as e:
        logger.warning(f"Could not open log file {log_file}: {e}")
        return

    file_level = getattr(logging, str(config.get("logging.level", "INFO")).upper(), logging.INFO)
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        config.get(
            "logging.format",
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    ))
    root_logger = logging.getLogger()
    root_logger.addHandler(file_handler)
    # Console handler keeps its own level
    root_logger.setLevel(min(root_logger.level, file_level))


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="photolens",
        description="photolens - EXIF metadata, AI analysis and privacy cleaning for one image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a photo
  python -m photolens photo.jpg

  # Print the full record as JSON
  python -m photolens photo.jpg --json

  # Also write clean_photo.jpg without any metadata
  python -m photolens photo.jpg --clean ./out
"""
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"photolens {__version__}"
    )
    parser.add_argument(
        "image",
        metavar="IMAGE",
        help="Path of the image to analyze"
    )
    parser.add_argument(
        "--clean",
        metavar="DIR",
        help="Write a metadata-free copy of the image into DIR"
    )
    parser.add_argument(
        "--format",
        choices=sorted(SUPPORTED_FORMATS),
        default=None,
        help="Format of the clean copy (default: privacy.format from config)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the record as JSON instead of text"
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: ~/.photolens/config.yaml)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose debug logging"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except the result and errors"
    )

    return parser.parse_args(argv)


async def run(
    orchestrator: ProcessingOrchestrator,
    asset: ImageAsset,
    clean_dir: Optional[str] = None,
    clean_format: str = "jpeg"
):
    """Process one asset and optionally write its clean copy.

    Returns:
        Tuple of (record, path of the clean copy or None)
    """
    record = await orchestrator.submit(asset)

    clean_path = None
    if clean_dir:
        clean = await orchestrator.privacy_clean(clean_format)
        if clean is not None:
            out_dir = Path(clean_dir).expanduser()
            out_dir.mkdir(parents=True, exist_ok=True)
            clean_path = out_dir / clean.filename
            clean_path.write_bytes(clean.data)
            logger.info(f"Wrote clean copy to {clean_path}")
        else:
            logger.warning("No preview available, skipping clean copy")

    return record, clean_path


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for photolens CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)
    setup_logging(args.verbose, args.quiet)

    image_path = Path(args.image).expanduser()
    if not image_path.is_file():
        print(f"✗ Image file not found: {image_path}", file=sys.stderr)
        return 1

    orchestrator = None
    try:
        config = ConfigManager.load(config_path=args.config, interactive=False)
        add_file_logging(config)

        orchestrator = ProcessingOrchestrator.from_config(config)
        clean_format = args.format or config.get("privacy.format", "jpeg")

        record, clean_path = asyncio.run(
            run(orchestrator, ImageAsset.from_path(image_path), args.clean, clean_format)
        )

        if args.json:
            print(json.dumps(record.to_dict(), indent=2))
        else:
            print(format_record(record))
            if clean_path:
                print()
                print(f"✓ Clean copy written to: {clean_path}")

        return 0 if record.state is ProcessingState.COMPLETE else 1

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        if not args.quiet:
            print()
            print(f"✗ Configuration Error: {e}")
        return 2

    except VisionModelError as e:
        logger.error(f"Vision model error: {e}", exc_info=args.verbose)
        if not args.quiet:
            print()
            print(f"✗ Vision Model Error: {e}")
            if e.model_name:
                print(f"  Model: {e.model_name}")
            print()
            print("Troubleshooting:")
            print("  - Verify vision.api_key / $OLLAMA_API_KEY")
            print("  - Check vision.model and vision.endpoint in config.yaml")
        return 3

    except SanitizationError as e:
        logger.error(f"Failed to create clean image: {e}")
        if not args.quiet:
            print()
            print(f"✗ Failed to create clean image: {e}")
        return 4

    except KeyboardInterrupt:
        if not args.quiet:
            print()
            print("Processing interrupted by user")
        return 130

    finally:
        if orchestrator is not None:
            orchestrator.close()


if __name__ == "__main__":
    sys.exit(main())
