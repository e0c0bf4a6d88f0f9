"""Progress and summary reporting shared by the backfill driver and its processors."""

from collections import Counter
from typing import Dict, Iterable

from ..core.models import BackfillConfig, ItemOutcome, ItemResult, RunStatistics
from ..core.protocols import LoggerProtocol


def log_configuration(logger: LoggerProtocol, config: BackfillConfig) -> None:
    """Log the backfill configuration."""
    logger.info("=" * 60)
    logger.info("EXIF METADATA BACKFILL")
    logger.info("=" * 60)
    logger.info(f"  Bucket:        {config.bucket}")
    logger.info(f"  Prefix:        {config.prefix or '(none)'}")
    logger.info(f"  Batch size:    {config.batch_size}")
    logger.info(f"  Processor:     {config.processor} (max {config.workers} workers)")
    logger.info(f"  Thumbnails:    {'skipped' if config.skip_thumbnails else 'included'}")
    logger.info(f"  Header bytes:  {config.header_bytes}")
    logger.info(f"  Dry run:       {config.dry_run}")
    logger.info("=" * 60)


def count_outcomes(results: Iterable[ItemResult]) -> Dict[ItemOutcome, int]:
    """Count results per outcome; every outcome is present in the mapping."""
    counts = Counter(result.outcome for result in results)
    return {outcome: counts.get(outcome, 0) for outcome in ItemOutcome}


def log_batch_progress(
    logger: LoggerProtocol,
    batch_number: int,
    batch_count: int,
    stats: RunStatistics,
    batch_time: float,
) -> None:
    """Log progress after a batch as processed / total files."""
    logger.info(
        f"[PROGRESS] Batch {batch_number}/{batch_count} - "
        f"{stats.progress_percent:.0f}% complete ({stats.processed}/{stats.total_files}) - "
        f"batch took {batch_time:.2f}s - "
        f"updated: {stats.updated}, skipped: {stats.skipped}, errors: {stats.errors}"
    )


def log_final_statistics(logger: LoggerProtocol, stats: RunStatistics, dry_run: bool) -> None:
    """Log the final run summary."""
    logger.info("=" * 60)
    logger.info("EXIF EXTRACTION STOPPED" if stats.stopped else "EXIF EXTRACTION COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Total files found: {stats.total_files}")
    logger.info(f"Files processed:   {stats.processed}")
    logger.info(f"Files updated:     {stats.updated}")
    logger.info(f"Files skipped:     {stats.skipped}")
    logger.info(f"Errors:            {stats.errors}")
    logger.info(f"Duration:          {stats.duration:.1f}s")
    logger.info(f"Rate:              {stats.throughput:.1f} files/sec")
    if dry_run:
        logger.warning("DRY RUN MODE - No changes were made")
    logger.info("=" * 60)
