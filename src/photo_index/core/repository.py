"""Folder aggregate repository: the read-modify-write of one folder's JSON index."""

from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError

from .exceptions import AggregateCorruptError
from .gateway import ObjectStoreGateway
from .locks import FolderLockRegistry
from .models import FolderAggregate, ImageMetadataEntry, utc_now
from .observability import LogContext
from .protocols import LoggerProtocol
from .tags import aggregate_key, folder_aggregate_tags


class FolderAggregateRepository:
    """
    Owns the upsert of ``{folder}/{folder}.json``.

    Upserts for the same folder are serialized through a ``FolderLockRegistry``
    so two writers can never interleave their read and write and lose an
    entry. Store failures propagate to the caller unchanged; nothing is
    retried or rolled back here.
    """

    def __init__(
        self,
        gateway: ObjectStoreGateway,
        logger: LoggerProtocol,
        locks: Optional[FolderLockRegistry] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._gateway = gateway
        self._logger = logger
        self._locks = locks if locks is not None else FolderLockRegistry()
        self._clock = clock

    @property
    def locks(self) -> FolderLockRegistry:
        return self._locks

    def load(self, bucket: str, folder_name: str) -> Optional[FolderAggregate]:
        """
        Read a folder's aggregate.

        Returns:
            The aggregate, or None if the folder has none yet

        Raises:
            AggregateCorruptError: If the stored JSON does not parse
            StoreError: On transport failures
        """
        key = aggregate_key(folder_name)
        raw = self._gateway.read_object_if_exists(bucket, key)
        if raw is None:
            return None
        try:
            return FolderAggregate.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            raise AggregateCorruptError(
                f"Aggregate {key} in bucket {bucket} is not valid JSON: {e}",
                folder_name=folder_name,
            ) from e

    def save(self, bucket: str, aggregate: FolderAggregate) -> None:
        self._gateway.put_object(
            bucket,
            aggregate_key(aggregate.folder_name),
            aggregate.to_json().encode("utf-8"),
            "application/json",
            tags=folder_aggregate_tags(aggregate),
        )

    def upsert(
        self,
        bucket: str,
        folder_name: str,
        entry: ImageMetadataEntry,
        known_absent: bool = False,
    ) -> FolderAggregate:
        """
        Insert or replace ``entry`` in the folder's aggregate and persist it.

        A missing aggregate is created. A corrupt one is logged as a data-loss
        risk and recreated from scratch rather than halting the caller.
        """
        context = LogContext(operation="upsert", component="folder_repository").with_metadata(
            folder=folder_name, source_image=entry.source_image
        )
        with self._locks.hold(bucket, folder_name):
            try:
                aggregate = self.load(bucket, folder_name)
            except AggregateCorruptError as e:
                self._logger.error(
                    f"DATA LOSS RISK: recreating corrupt aggregate "
                    f"{aggregate_key(folder_name)}; existing entries are dropped: {e}",
                    context,
                )
                aggregate = None

            now = self._clock()
            if aggregate is None:
                self._logger.info("Creating new folder aggregate", context)
                aggregate = FolderAggregate.create(folder_name, now)

            replaced = aggregate.upsert_image(entry, now, known_absent=known_absent)
            self.save(bucket, aggregate)

        self._logger.info(
            "Updated existing entry" if replaced else "Added new entry",
            context,
            total_images=aggregate.total_images,
        )
        return aggregate
