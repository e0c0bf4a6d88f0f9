"""Factory classes for creating configured service instances."""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

import boto3
from botocore.config import Config

from .backfill import BackfillDriver
from .config import StoreSettings
from .exif import ExifExtractor
from .gateway import ObjectStoreGateway
from .incremental import IncrementalUpdater
from .locks import FolderLockRegistry
from .models import utc_now
from .observability import StructuredLogger
from .protocols import LoggerProtocol, S3ClientProtocol
from .repository import FolderAggregateRepository

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
else:
    S3Client = Any


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> StructuredLogger:
        """Create a configured structured logger."""
        return StructuredLogger(name, level=level)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(settings: Optional[StoreSettings] = None, **kwargs: Any) -> S3Client:
        """
        Create an S3 client with bounded timeouts.

        Every call carries ``settings.timeout_seconds`` as its connect and read
        timeout so one unresponsive object cannot stall a batch indefinitely.
        """
        settings = settings or StoreSettings.from_env()
        config = Config(
            connect_timeout=settings.timeout_seconds,
            read_timeout=settings.timeout_seconds,
            retries={"max_attempts": settings.max_attempts, "mode": "standard"},
            s3={"addressing_style": "path"} if settings.endpoint_url else None,
        )
        session = boto3.Session(
            aws_access_key_id=settings.access_key,
            aws_secret_access_key=settings.secret_key,
            region_name=settings.region_name,
        )
        return session.client("s3", endpoint_url=settings.endpoint_url, config=config, **kwargs)


@dataclass
class PhotoIndexServices:
    """The wired service graph; every writer shares one lock registry."""

    gateway: ObjectStoreGateway
    repository: FolderAggregateRepository
    extractor: ExifExtractor
    updater: IncrementalUpdater
    backfill: BackfillDriver
    locks: FolderLockRegistry


class PhotoIndexFactory:
    """Factory for creating the complete service graph."""

    @staticmethod
    def create_services(
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        settings: Optional[StoreSettings] = None,
        clock: Callable[[], datetime] = utc_now,
        skip_thumbnails: bool = True,
    ) -> PhotoIndexServices:
        """Create a fully configured set of services."""
        settings = settings or StoreSettings.from_env()

        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(settings)

        if logger is None:
            logger = LoggerFactory.create_logger("photo-index")

        locks = FolderLockRegistry()
        gateway = ObjectStoreGateway(s3_client, logger, header_bytes=settings.header_bytes)
        repository = FolderAggregateRepository(gateway, logger, locks=locks, clock=clock)
        extractor = ExifExtractor()
        updater = IncrementalUpdater(
            gateway, repository, extractor, logger, clock=clock, skip_thumbnails=skip_thumbnails
        )
        backfill = BackfillDriver(gateway, repository, extractor, logger, clock=clock)

        return PhotoIndexServices(
            gateway=gateway,
            repository=repository,
            extractor=extractor,
            updater=updater,
            backfill=backfill,
            locks=locks,
        )
