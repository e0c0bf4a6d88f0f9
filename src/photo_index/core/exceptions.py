"""Custom exceptions for the photo index."""

from __future__ import annotations

from typing import Optional


class PhotoIndexError(Exception):
    """Base exception for all photo index errors."""


class NotFoundError(PhotoIndexError):
    """Raised when an object or bucket is absent from the store."""

    def __init__(self, message: str, bucket: str = "", key: Optional[str] = None):
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class StoreError(PhotoIndexError):
    """Error raised for object store transport, permission or timeout failures."""


class ExifParseError(PhotoIndexError):
    """Error raised inside the extractor when EXIF tags cannot be decoded."""


class AggregateCorruptError(PhotoIndexError):
    """Raised when a stored folder aggregate cannot be parsed."""

    def __init__(self, message: str, folder_name: str = ""):
        super().__init__(message)
        self.folder_name = folder_name


class ConfigurationError(PhotoIndexError):
    """Error raised for invalid configuration or unmet run preconditions."""
