"""Main module for the photo index CLI."""

import argparse
import signal
import sys
from typing import List, Optional

from . import __version__
from .core import (
    BackfillConfig,
    ConfigurationError,
    PhotoIndexError,
    StoreSettings,
    enable_debug_logging,
    get_logger,
)
from .core.factories import PhotoIndexFactory


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the photo index CLI."""
    parser = argparse.ArgumentParser(
        prog="photo-index",
        description="Photo Index - per-folder EXIF metadata index for S3-compatible stores",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Index every image in a bucket
  photo-index backfill --bucket photovault

  # Only 2024 photos, small batches, without writing anything
  photo-index backfill --bucket photovault --prefix 2024/ --batch-size 3 --dry-run

  # Show version
  photo-index version
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    backfill_parser = subparsers.add_parser(
        "backfill", help="Rescan a bucket and index images not yet processed"
    )
    backfill_parser.add_argument(
        "--bucket", default=None, help="Bucket to scan (default: $PHOTO_INDEX_BUCKET)"
    )
    backfill_parser.add_argument("--prefix", default="", help="Only process keys with this prefix")
    backfill_parser.add_argument(
        "--batch-size", type=int, default=5, help="Objects per batch (default: 5)"
    )
    backfill_parser.add_argument(
        "--max-workers", type=int, default=None, help="Threads per batch (default: batch size)"
    )
    backfill_parser.add_argument(
        "--processor",
        default="multithread",
        choices=["multithread", "serial"],
        help="Batch processing strategy (default: multithread)",
    )
    backfill_parser.add_argument(
        "--dry-run", action="store_true", help="Read and decide everything, write nothing"
    )
    backfill_parser.add_argument(
        "--include-thumbnails", action="store_true", help="Also index thumbnail-like file names"
    )
    backfill_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers.add_parser("version", help="Show version information")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; argparse exits with status 2 on usage errors."""
    return create_parser().parse_args(argv)


def run_backfill(args: argparse.Namespace) -> int:
    """Run the backfill command; returns the process exit code."""
    logger = get_logger("photo-index.cli")
    try:
        settings = StoreSettings.from_env()
        bucket = args.bucket or settings.default_bucket
        if not bucket:
            raise ConfigurationError("No bucket given (use --bucket or PHOTO_INDEX_BUCKET)")
        config = BackfillConfig(
            bucket=bucket,
            prefix=args.prefix,
            batch_size=args.batch_size,
            max_workers=args.max_workers,
            processor=args.processor,
            dry_run=args.dry_run,
            skip_thumbnails=not args.include_thumbnails,
            header_bytes=settings.header_bytes,
        )
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    services = PhotoIndexFactory.create_services(
        settings=settings, skip_thumbnails=config.skip_thumbnails
    )
    if args.debug:
        enable_debug_logging("photo-index", "photo-index.cli", "photo-index.exif")

    def _request_stop(signum, _frame):
        logger.warning(f"Received signal {signum}; stopping after the current batch")
        services.backfill.request_stop()

    previous_handlers = {
        sig: signal.signal(sig, _request_stop) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        services.backfill.run(config)
    except ConfigurationError as e:
        logger.error(f"[FATAL] {e}")
        return 1
    except PhotoIndexError as e:
        logger.error(f"[FATAL] Backfill failed: {e}", exc_info=True)
        return 1
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``photo-index`` command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "backfill":
        sys.exit(run_backfill(args))
    elif args.command == "version":
        print("Photo Index CLI")
        print(f"Version {__version__}")
        sys.exit(0)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
