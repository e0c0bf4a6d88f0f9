"""Conversion between named records and the store's flat string tags.

Object keys, folder names and user-metadata tag names all live here so the
rest of the code works with ``ExifRecord`` and ``FolderAggregate`` only.
"""

import posixpath
from datetime import datetime
from typing import Dict, Mapping, Optional

from .models import CREATED_BY, ExifRecord, FolderAggregate

ROOT_FOLDER = "root"

TAG_DATE_TAKEN = "date-taken"
TAG_CAMERA_MAKE = "camera-make"
TAG_CAMERA_MODEL = "camera-model"
TAG_GPS_COORDINATES = "gps-coordinates"
TAG_ORIENTATION = "orientation"
TAG_HAS_EXIF = "has-exif"
TAG_EXIF_PROCESSED = "exif-processed"

EXIF_TAGS = (
    TAG_DATE_TAKEN,
    TAG_CAMERA_MAKE,
    TAG_CAMERA_MODEL,
    TAG_GPS_COORDINATES,
    TAG_ORIENTATION,
    TAG_HAS_EXIF,
    TAG_EXIF_PROCESSED,
)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".tiff", ".tif", ".heic", ".heif")
HEIF_EXTENSIONS = (".heic", ".heif")
THUMBNAIL_MARKERS = ("thumb",)
THUMBNAIL_SUFFIXES = ("_t", "-t")


def isoformat(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _ascii(value: str) -> str:
    # S3 user metadata must be printable ASCII
    return "".join(ch for ch in value if 32 <= ord(ch) < 127).strip()


def folder_name_for_key(key: str) -> str:
    """First path segment of ``key``, or ``root`` for keys without a separator."""
    head, sep, _ = key.partition("/")
    return head if sep and head else ROOT_FOLDER


def aggregate_key(folder_name: str) -> str:
    return f"{folder_name}/{folder_name}.json"


def is_image_key(key: str) -> bool:
    return not key.endswith("/") and key.lower().endswith(IMAGE_EXTENSIONS)


def is_heif_key(key: str) -> bool:
    return key.lower().endswith(HEIF_EXTENSIONS)


def is_thumbnail_key(key: str) -> bool:
    stem = posixpath.splitext(posixpath.basename(key))[0].lower()
    return any(m in stem for m in THUMBNAIL_MARKERS) or stem.endswith(THUMBNAIL_SUFFIXES)


def is_candidate_key(key: str, skip_thumbnails: bool = True) -> bool:
    """Whether ``key`` should be indexed by either the backfill or incremental path."""
    if not is_image_key(key):
        return False
    return not (skip_thumbnails and is_thumbnail_key(key))


def normalize_tags(raw: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Lower-case tag names and drop the ``x-amz-meta-`` prefix if present."""
    tags: Dict[str, str] = {}
    for name, value in (raw or {}).items():
        name = name.lower()
        if name.startswith("x-amz-meta-"):
            name = name[len("x-amz-meta-"):]
        tags[name] = value
    return tags


def exif_tags(record: ExifRecord) -> Dict[str, str]:
    """The EXIF-derived tags for ``record``, without the processed timestamp."""
    tags = {TAG_HAS_EXIF: "true" if record.has_exif else "false"}
    if record.date_taken is not None:
        tags[TAG_DATE_TAKEN] = isoformat(record.date_taken)
    if record.camera_make:
        tags[TAG_CAMERA_MAKE] = _ascii(record.camera_make)
    if record.camera_model:
        tags[TAG_CAMERA_MODEL] = _ascii(record.camera_model)
    if record.gps_coordinates is not None:
        tags[TAG_GPS_COORDINATES] = record.gps_coordinates.as_tag()
    if record.orientation is not None:
        tags[TAG_ORIENTATION] = str(record.orientation)
    return {name: value for name, value in tags.items() if value}


def build_image_tags(
    existing: Optional[Mapping[str, str]],
    record: ExifRecord,
    processed_at: datetime,
) -> Dict[str, str]:
    """
    Merge the EXIF tags for ``record`` onto an object's existing tags.

    Stale EXIF tags the new record does not set are removed; every other tag
    is carried over untouched.
    """
    merged = {
        name: value
        for name, value in normalize_tags(existing).items()
        if name not in EXIF_TAGS
    }
    merged.update(exif_tags(record))
    merged[TAG_EXIF_PROCESSED] = isoformat(processed_at)
    return merged


def has_processed_marker(tags: Optional[Mapping[str, str]]) -> bool:
    """True when the ``has-exif`` tag is present, whatever its value."""
    return TAG_HAS_EXIF in normalize_tags(tags)


def folder_aggregate_tags(aggregate: FolderAggregate) -> Dict[str, str]:
    """Advisory summary tags attached to a folder's JSON object."""
    return {
        "folder-name": _ascii(aggregate.folder_name),
        "image-count": str(aggregate.total_images),
        "last-updated": isoformat(aggregate.last_updated),
        "updated-by": CREATED_BY,
    }
