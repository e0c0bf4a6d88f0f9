"""Shared data models for the photo index."""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_HEADER_BYTES = 64 * 1024
CREATED_BY = "photo-index"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    """Base for records persisted as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GpsCoordinates(_CamelModel):
    """A resolved latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    def as_tag(self) -> str:
        return f"{self.latitude},{self.longitude}"


# Fields whose presence makes has_exif true, as (python name, json alias).
_EXIF_VALUE_FIELDS = (
    ("date_taken", "dateTaken"),
    ("camera_make", "cameraMake"),
    ("camera_model", "cameraModel"),
    ("gps_coordinates", "gpsCoordinates"),
    ("orientation", "orientation"),
)


class ExifRecord(_CamelModel):
    """Capture metadata extracted from one image."""

    model_config = ConfigDict(frozen=True)

    date_taken: Optional[datetime] = None
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    gps_coordinates: Optional[GpsCoordinates] = None
    orientation: Optional[int] = None
    has_exif: bool = False

    @model_validator(mode="before")
    @classmethod
    def _derive_has_exif(cls, data: Any) -> Any:
        # has_exif always reflects the other fields, whatever the input claims
        if isinstance(data, dict):
            data = dict(data)
            populated = any(
                data.get(name) is not None or data.get(alias) is not None
                for name, alias in _EXIF_VALUE_FIELDS
            )
            data.pop("hasExif", None)
            data["has_exif"] = populated
        return data

    @classmethod
    def empty(cls) -> "ExifRecord":
        return cls()


class ObjectDescriptor(BaseModel):
    """Stat snapshot of one stored object."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: str = ""
    content_type: Optional[str] = None
    existing_tags: Dict[str, str] = Field(default_factory=dict)


class ImageMetadataEntry(_CamelModel):
    """One image's record inside a folder aggregate."""

    source_image: str
    extracted_at: datetime
    file_size: int = 0
    last_modified: Optional[datetime] = None
    etag: str = ""
    exif: ExifRecord = Field(default_factory=ExifRecord)

    @classmethod
    def from_descriptor(
        cls,
        descriptor: ObjectDescriptor,
        exif: ExifRecord,
        extracted_at: Optional[datetime] = None,
    ) -> "ImageMetadataEntry":
        return cls(
            source_image=descriptor.key,
            extracted_at=extracted_at or utc_now(),
            file_size=descriptor.size,
            last_modified=descriptor.last_modified,
            etag=descriptor.etag,
            exif=exif,
        )


class FolderAggregate(_CamelModel):
    """
    The JSON index of every processed image within one folder.

    ``images`` is keyed logically by ``source_image``: ``upsert_image`` replaces
    an existing entry in place rather than appending a duplicate, and
    ``total_images`` is recomputed from the sequence on every change. Keys this
    model does not know about (left by older writers) are kept on rewrite.
    """

    model_config = ConfigDict(extra="allow")

    folder_name: str
    generated_at: datetime
    last_updated: datetime
    total_images: int = 0
    created_by: str = CREATED_BY
    images: List[ImageMetadataEntry] = Field(default_factory=list)

    @classmethod
    def create(cls, folder_name: str, now: Optional[datetime] = None) -> "FolderAggregate":
        now = now or utc_now()
        return cls(folder_name=folder_name, generated_at=now, last_updated=now)

    def find_index(self, source_image: str) -> Optional[int]:
        for index, image in enumerate(self.images):
            if image.source_image == source_image:
                return index
        return None

    def upsert_image(
        self,
        entry: ImageMetadataEntry,
        now: Optional[datetime] = None,
        known_absent: bool = False,
    ) -> bool:
        """
        Insert or replace ``entry`` by its source image key.

        Args:
            entry: The entry to store
            now: Timestamp for ``last_updated``
            known_absent: Skip the lookup when the caller knows the key is new

        Returns:
            True if an existing entry was replaced, False if appended
        """
        index = None if known_absent else self.find_index(entry.source_image)
        if index is None:
            self.images.append(entry)
        else:
            self.images[index] = entry
        self.total_images = len(self.images)
        self.last_updated = now or utc_now()
        return index is not None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class BackfillConfig(BaseModel):
    """Configuration for a backfill run."""

    bucket: str = Field(min_length=1)
    prefix: str = ""
    batch_size: int = Field(default=5, gt=0)
    max_workers: Optional[int] = Field(default=None, gt=0)
    processor: str = Field(default="multithread", pattern="^(multithread|serial)$")
    dry_run: bool = False
    skip_thumbnails: bool = True
    header_bytes: int = Field(default=DEFAULT_HEADER_BYTES, gt=0)

    @property
    def workers(self) -> int:
        return self.max_workers or self.batch_size


class ItemOutcome(str, Enum):
    """Settled state of one backfill item."""

    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


class ItemResult(BaseModel):
    """Result of processing a single object during backfill."""

    key: str
    folder_name: str = ""
    outcome: ItemOutcome
    error: str = ""
    tags: Dict[str, str] = Field(default_factory=dict)
    dry_run: bool = False


@dataclass
class RunStatistics:
    """Process-local counters for one backfill run."""

    total_files: int = 0
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    stopped: bool = False
    results: List[ItemResult] = field(default_factory=list)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def record(self, result: ItemResult) -> None:
        """Count one settled item. Safe to call from worker threads."""
        with self._lock:
            self.processed += 1
            if result.outcome is ItemOutcome.UPDATED:
                self.updated += 1
            elif result.outcome is ItemOutcome.SKIPPED:
                self.skipped += 1
            else:
                self.errors += 1
            self.results.append(result)

    def finish(self) -> None:
        self.end_time = time.time()

    @property
    def duration(self) -> float:
        return (self.end_time or time.time()) - self.start_time

    @property
    def throughput(self) -> float:
        duration = self.duration
        return self.processed / duration if duration > 0 else 0.0

    @property
    def progress_percent(self) -> float:
        if self.total_files == 0:
            return 100.0
        return self.processed / self.total_files * 100

    def keys_with(self, outcome: ItemOutcome) -> List[str]:
        with self._lock:
            return sorted(r.key for r in self.results if r.outcome is outcome)
