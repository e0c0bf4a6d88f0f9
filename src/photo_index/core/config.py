"""Object store settings read from the environment."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .models import DEFAULT_HEADER_BYTES

ENV_PREFIX = "PHOTO_INDEX_"


class StoreSettings(BaseModel):
    """
    Connection and timeout settings for the S3-compatible store.

    Credentials are optional: when unset, boto3's default credential chain
    (env vars, shared config, instance role) applies.
    """

    endpoint_url: Optional[str] = None
    region_name: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    header_bytes: int = Field(default=DEFAULT_HEADER_BYTES, gt=0)
    default_bucket: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoreSettings":
        """
        Build settings from ``PHOTO_INDEX_*`` environment variables.

        Environment Variables:
            PHOTO_INDEX_S3_ENDPOINT_URL: Endpoint for MinIO or other S3-compatible stores
            PHOTO_INDEX_S3_REGION: Region name
            PHOTO_INDEX_S3_ACCESS_KEY / PHOTO_INDEX_S3_SECRET_KEY: Static credentials
            PHOTO_INDEX_TIMEOUT_SECONDS: Connect/read timeout per store call
            PHOTO_INDEX_MAX_ATTEMPTS: botocore retry attempts per call
            PHOTO_INDEX_HEADER_BYTES: Size of the ranged header fetch
            PHOTO_INDEX_BUCKET: Default bucket for the CLI

        Raises:
            ConfigurationError: If a value is malformed
        """
        env = os.environ if environ is None else environ
        mapping = {
            "endpoint_url": "S3_ENDPOINT_URL",
            "region_name": "S3_REGION",
            "access_key": "S3_ACCESS_KEY",
            "secret_key": "S3_SECRET_KEY",
            "timeout_seconds": "TIMEOUT_SECONDS",
            "max_attempts": "MAX_ATTEMPTS",
            "header_bytes": "HEADER_BYTES",
            "default_bucket": "BUCKET",
        }
        values = {
            field_name: env[ENV_PREFIX + suffix]
            for field_name, suffix in mapping.items()
            if env.get(ENV_PREFIX + suffix)
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid store settings: {e}") from e
