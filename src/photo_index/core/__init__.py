"""Core services and shared components for the photo index."""

from .logging_config import enable_debug_logging, get_logger, setup_logger
from .exceptions import (
    PhotoIndexError,
    NotFoundError,
    StoreError,
    ExifParseError,
    AggregateCorruptError,
    ConfigurationError,
)
from .models import (
    BackfillConfig,
    ExifRecord,
    FolderAggregate,
    GpsCoordinates,
    ImageMetadataEntry,
    ItemOutcome,
    ItemResult,
    ObjectDescriptor,
    RunStatistics,
)
from .config import StoreSettings
from .exif import ExifExtractor, extract_exif
from .gateway import ObjectStoreGateway
from .locks import FolderLockRegistry
from .repository import FolderAggregateRepository
from .incremental import IncrementalUpdater
from .backfill import BackfillDriver

__all__ = [
    "setup_logger",
    "get_logger",
    "enable_debug_logging",
    "PhotoIndexError",
    "NotFoundError",
    "StoreError",
    "ExifParseError",
    "AggregateCorruptError",
    "ConfigurationError",
    "BackfillConfig",
    "ExifRecord",
    "FolderAggregate",
    "GpsCoordinates",
    "ImageMetadataEntry",
    "ItemOutcome",
    "ItemResult",
    "ObjectDescriptor",
    "RunStatistics",
    "StoreSettings",
    "ExifExtractor",
    "extract_exif",
    "ObjectStoreGateway",
    "FolderLockRegistry",
    "FolderAggregateRepository",
    "IncrementalUpdater",
    "BackfillDriver",
]
