"""Backfill driver: rescan a bucket and index every image not yet processed."""

import threading
import time
from datetime import datetime
from typing import Callable, List, Optional

from .error_handling import BatchOperationContextManager
from .exceptions import ConfigurationError
from .exif import ExifExtractor
from .gateway import ObjectStoreGateway
from .models import (
    BackfillConfig,
    ImageMetadataEntry,
    ItemOutcome,
    ItemResult,
    RunStatistics,
    utc_now,
)
from .observability import LogContext
from .protocols import BatchProcessor, LoggerProtocol
from .repository import FolderAggregateRepository
from .tags import (
    build_image_tags,
    folder_name_for_key,
    has_processed_marker,
    is_candidate_key,
    is_heif_key,
)
from ..processors.common import log_batch_progress, log_configuration, log_final_statistics


def create_batch_processor(config: BackfillConfig) -> BatchProcessor:
    # Imported here: the processors package imports core on load
    from ..processors.multithread import ThreadPoolBatchProcessor
    from ..processors.serial import SerialBatchProcessor

    if config.processor == "serial":
        return SerialBatchProcessor()
    return ThreadPoolBatchProcessor(max_workers=config.workers)


class BackfillDriver:
    """
    Scan, batch and process every candidate image under a prefix.

    Batches run strictly one after another; inside a batch the batch processor
    decides the parallelism and joins every item before the next batch. Two
    items of the same folder may share a batch: their aggregate upserts are
    serialized by the repository's folder locks.
    """

    def __init__(
        self,
        gateway: ObjectStoreGateway,
        repository: FolderAggregateRepository,
        extractor: ExifExtractor,
        logger: LoggerProtocol,
        batch_processor: Optional[BatchProcessor] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._gateway = gateway
        self._repository = repository
        self._extractor = extractor
        self._logger = logger
        self._batch_processor = batch_processor
        self._clock = clock
        self._stop_requested = threading.Event()

    def request_stop(self) -> None:
        """Ask the running backfill to stop before its next batch."""
        self._stop_requested.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def scan(self, config: BackfillConfig) -> List[str]:
        """List the candidate image keys under the configured prefix."""
        self._logger.info(f"[SCAN] Scanning bucket '{config.bucket}' with prefix '{config.prefix}'...")
        keys = [
            obj.key
            for obj in self._gateway.list_objects(config.bucket, config.prefix)
            if is_candidate_key(obj.key, config.skip_thumbnails)
        ]
        self._logger.info(f"[SCAN] Found {len(keys)} image files")
        return keys

    def process_object(self, config: BackfillConfig, key: str) -> ItemResult:
        """
        Process one object: stat, skip check, header fetch, extract, write.

        Never raises; any failure becomes an ERROR result for this item only.
        """
        folder_name = folder_name_for_key(key)
        context = LogContext(operation="process_object", component="backfill").with_metadata(key=key)
        try:
            descriptor = self._gateway.stat_object(config.bucket, key)

            if has_processed_marker(descriptor.existing_tags):
                self._logger.debug("[SKIP] Already has EXIF metadata", context)
                return ItemResult(key=key, folder_name=folder_name, outcome=ItemOutcome.SKIPPED)

            if is_heif_key(key):
                # The EXIF item of a HEIF container can sit anywhere in the file
                image_bytes = self._gateway.get_object_bytes(config.bucket, key)
            else:
                image_bytes = self._gateway.fetch_header_bytes(config.bucket, key, config.header_bytes)
            record = self._extractor.extract(image_bytes, source=key)
            now = self._clock()
            entry = ImageMetadataEntry.from_descriptor(descriptor, record, extracted_at=now)
            tags = build_image_tags(descriptor.existing_tags, record, now)

            if config.dry_run:
                self._logger.info("[DRY-RUN] Would update", context, tags=tags)
            else:
                self._repository.upsert(config.bucket, folder_name, entry)
                self._gateway.upsert_metadata(config.bucket, key, tags, descriptor.content_type)
                self._logger.debug("[UPDATE] Indexed and tagged", context)

            return ItemResult(
                key=key,
                folder_name=folder_name,
                outcome=ItemOutcome.UPDATED,
                tags=tags,
                dry_run=config.dry_run,
            )
        except Exception as e:  # noqa: BLE001
            self._logger.error(f"[ERROR] Failed to process: {type(e).__name__}: {e}", context)
            return ItemResult(
                key=key, folder_name=folder_name, outcome=ItemOutcome.ERROR, error=str(e)
            )

    def run(self, config: BackfillConfig) -> RunStatistics:
        """
        Run a full backfill and return its statistics.

        Raises:
            ConfigurationError: If the target bucket does not exist
            StoreError: If the bucket cannot be checked or listed
        """
        stats = RunStatistics()
        self._stop_requested.clear()
        log_configuration(self._logger, config)

        if not self._gateway.bucket_exists(config.bucket):
            raise ConfigurationError(f"Bucket '{config.bucket}' does not exist")

        keys = self.scan(config)
        stats.total_files = len(keys)
        if not keys:
            self._logger.info("No image files found to process")
            stats.finish()
            return stats

        batches = [
            keys[i : i + config.batch_size] for i in range(0, len(keys), config.batch_size)
        ]
        processor = self._batch_processor or create_batch_processor(config)
        self._logger.info(
            f"[BATCH] Processing {len(keys)} images in {len(batches)} batches of {config.batch_size}"
        )

        with BatchOperationContextManager(f"Backfill of s3://{config.bucket}/{config.prefix}") as batch_manager:
            for number, batch in enumerate(batches, start=1):
                if self.stop_requested:
                    self._logger.warning(
                        f"Stop requested; halting before batch {number}/{len(batches)}"
                    )
                    stats.stopped = True
                    break

                batch_start = time.time()
                results = processor.process_batch(
                    batch, lambda key: self.process_object(config, key)
                )
                for result in results:
                    stats.record(result)
                    if result.outcome is ItemOutcome.ERROR:
                        batch_manager.add_error(result.error, item_identifier=result.key)

                log_batch_progress(
                    self._logger, number, len(batches), stats, time.time() - batch_start
                )

        stats.finish()
        log_final_statistics(self._logger, stats, config.dry_run)
        return stats
