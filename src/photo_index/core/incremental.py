"""Incremental updater, called right after a single image has been stored."""

from datetime import datetime
from typing import Callable, Optional

from .exif import ExifExtractor
from .gateway import ObjectStoreGateway
from .models import ImageMetadataEntry, ObjectDescriptor, utc_now
from .observability import LogContext
from .protocols import LoggerProtocol
from .repository import FolderAggregateRepository
from .tags import build_image_tags, folder_name_for_key, is_candidate_key


class IncrementalUpdater:
    """Indexes one freshly stored image into its folder aggregate."""

    def __init__(
        self,
        gateway: ObjectStoreGateway,
        repository: FolderAggregateRepository,
        extractor: ExifExtractor,
        logger: LoggerProtocol,
        clock: Callable[[], datetime] = utc_now,
        skip_thumbnails: bool = True,
    ):
        self._gateway = gateway
        self._repository = repository
        self._extractor = extractor
        self._logger = logger
        self._clock = clock
        self._skip_thumbnails = skip_thumbnails

    def on_image_stored(
        self,
        bucket: str,
        key: str,
        image_bytes: bytes,
        descriptor: Optional[ObjectDescriptor] = None,
    ) -> bool:
        """
        Extract EXIF from ``image_bytes``, upsert the folder aggregate and tag the image.

        The upload that triggered this call has already succeeded, so nothing
        is raised from here: failures are logged and reported as False.

        Args:
            bucket: Bucket the image was stored in
            key: Object key of the stored image
            image_bytes: The stored bytes, as held by the uploader
            descriptor: Stat snapshot, fetched from the store when omitted

        Returns:
            True if the image was indexed and tagged
        """
        context = LogContext(operation="on_image_stored", component="incremental_updater")
        context = context.with_metadata(bucket=bucket, key=key)

        if not is_candidate_key(key, self._skip_thumbnails):
            self._logger.info("Skipping non-indexable object", context)
            return False

        try:
            if descriptor is None:
                descriptor = self._gateway.stat_object(bucket, key)

            record = self._extractor.extract(image_bytes, source=key)
            now = self._clock()
            entry = ImageMetadataEntry.from_descriptor(descriptor, record, extracted_at=now)

            aggregate = self._repository.upsert(bucket, folder_name_for_key(key), entry)

            tags = build_image_tags(descriptor.existing_tags, record, now)
            self._gateway.upsert_metadata(bucket, key, tags, descriptor.content_type)
        except Exception as e:  # noqa: BLE001
            self._logger.error(
                f"Folder metadata update failed: {type(e).__name__}: {e}", context
            )
            return False

        self._logger.info(
            "Indexed image",
            context,
            has_exif=record.has_exif,
            folder_images=aggregate.total_images,
        )
        return True
