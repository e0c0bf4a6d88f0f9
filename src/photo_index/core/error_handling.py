# src/photo_index/core/error_handling.py

import functools
import logging
import time
from typing import Any, Callable, Dict, List, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import NotFoundError, StoreError

NOT_FOUND_ERROR_CODES = ("404", "NoSuchKey", "NotFound", "NoSuchBucket")
RETRYABLE_S3_ERROR_CODES = (
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "SlowDown",
    "RequestLimitExceeded",
)

F = TypeVar("F", bound=Callable[..., Any])


def client_error_code(error: BaseException) -> str:
    """Return the S3 error code carried by a botocore ClientError, or ''."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return ""


def translate_store_errors(func: F) -> F:
    """
    Translate botocore failures raised by ``func`` into the photo index taxonomy.

    A ClientError carrying a not-found code becomes ``NotFoundError``; any other
    ClientError or BotoCoreError (timeouts, connection failures) becomes
    ``StoreError``. The original exception is kept as ``__cause__``.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + "." + func.__name__)
        try:
            return func(*args, **kwargs)
        except ClientError as e:
            code = client_error_code(e)
            if code in NOT_FOUND_ERROR_CODES:
                raise NotFoundError(f"{func.__name__}: not found ({code})") from e
            logger.debug(f"S3 operation '{func.__name__}' failed with {code}: {e}")
            raise StoreError(f"S3 operation failed in {func.__name__}: {e}") from e
        except BotoCoreError as e:
            logger.debug(f"S3 transport failure in '{func.__name__}': {e}")
            raise StoreError(f"S3 transport failure in {func.__name__}: {e}") from e

    return wrapper  # type: ignore[return-value]


def retry_s3_operation(max_attempts=3, initial_delay=1.0, backoff_factor=2.0):
    """
    Decorator to retry read-only S3 operations on throttling errors.

    Only a ``StoreError`` whose cause is a ClientError with a throttling code is
    retried, with exponential backoff. Anything else propagates immediately.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + "." + func.__name__)
            delay = initial_delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except StoreError as e:
                    code = client_error_code(e.__cause__) if e.__cause__ else ""
                    if code not in RETRYABLE_S3_ERROR_CODES:
                        raise
                    if attempt >= max_attempts:
                        logger.error(
                            f"S3 operation '{func.__name__}' failed after "
                            f"{max_attempts} attempts. Error: {e}"
                        )
                        raise
                    logger.warning(
                        f"S3 operation '{func.__name__}' throttled ({code}). "
                        f"Attempt {attempt}/{max_attempts}. Retrying in {delay:.2f}s."
                    )
                    time.sleep(delay)
                    delay *= backoff_factor

        return wrapper

    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """

    def __init__(self, operation_name="Batch Operation"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, str]] = []
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i + 1}/{len(self.errors)} for item "
                    f"'{error_detail['item']}': {error_detail['error']}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Report an error for a specific item within the 'with' block.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): The item that failed (e.g. the object key).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(
            f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}"
        )
