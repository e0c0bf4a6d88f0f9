"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import ItemResult


class S3ClientProtocol(Protocol):
    """Protocol for the S3 client operations the gateway relies on."""

    def head_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Stat an object."""
        ...

    def get_object(self, Bucket: str, Key: str, **kwargs: Any) -> Dict[str, Any]:
        """Get an object, optionally with a ``Range``."""
        ...

    def put_object(self, Bucket: str, Key: str, Body: bytes, **kwargs: Any) -> Dict[str, Any]:
        """Put an object."""
        ...

    def copy_object(
        self, Bucket: str, Key: str, CopySource: Dict[str, str], **kwargs: Any
    ) -> Dict[str, Any]:
        """Copy an object, used in place to replace its metadata."""
        ...

    def head_bucket(self, Bucket: str) -> Dict[str, Any]:
        """Check a bucket exists and is reachable."""
        ...

    def get_paginator(self, operation_name: str) -> Any:
        """Get paginator for S3 operations."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations with an optional LogContext."""

    def debug(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


ItemWorker = Callable[[str], ItemResult]


class BatchProcessor(ABC):
    """Runs one batch of keys through a worker and joins every item."""

    @abstractmethod
    def process_batch(self, batch: List[str], worker: ItemWorker) -> List[ItemResult]:
        """Process a batch of object keys."""
        ...
