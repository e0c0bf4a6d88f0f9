"""Thin adapter over a boto3 S3 client.

The gateway is the only component that touches the client. It converts
boto responses into ``ObjectDescriptor`` records and botocore failures into
``NotFoundError`` / ``StoreError``.
"""

from typing import Any, Dict, List, Mapping, Optional

from .error_handling import retry_s3_operation, translate_store_errors
from .exceptions import NotFoundError, StoreError
from .models import DEFAULT_HEADER_BYTES, ObjectDescriptor
from .protocols import LoggerProtocol, S3ClientProtocol
from .tags import normalize_tags


def _strip_etag(etag: Optional[str]) -> str:
    return (etag or "").strip('"')


class ObjectStoreGateway:
    """Object store operations used by the repository, updater and backfill driver."""

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        logger: LoggerProtocol,
        header_bytes: int = DEFAULT_HEADER_BYTES,
    ):
        self._s3_client = s3_client
        self._logger = logger
        self._header_bytes = header_bytes

    @translate_store_errors
    def stat_object(self, bucket: str, key: str) -> ObjectDescriptor:
        """Stat ``key``; raises NotFoundError when it is absent."""
        response = self._s3_client.head_object(Bucket=bucket, Key=key)
        return ObjectDescriptor(
            bucket=bucket,
            key=key,
            size=response.get("ContentLength", 0),
            last_modified=response.get("LastModified"),
            etag=_strip_etag(response.get("ETag")),
            content_type=response.get("ContentType"),
            existing_tags=normalize_tags(response.get("Metadata")),
        )

    @translate_store_errors
    def _get_range(self, bucket: str, key: str, limit: int) -> bytes:
        response = self._s3_client.get_object(
            Bucket=bucket, Key=key, Range=f"bytes=0-{limit - 1}"
        )
        return response["Body"].read()

    @translate_store_errors
    def get_object_bytes(self, bucket: str, key: str) -> bytes:
        """Download the whole object."""
        response = self._s3_client.get_object(Bucket=bucket, Key=key)
        return response["Body"].read()

    def fetch_header_bytes(self, bucket: str, key: str, limit: Optional[int] = None) -> bytes:
        """
        Fetch the first ``limit`` bytes of an object, enough for its EXIF segment.

        Any failure of the ranged request falls back to a full download, so the
        caller never needs to know which path served the bytes. Objects shorter
        than ``limit`` come back whole from the ranged request.

        Raises:
            NotFoundError: If the object is absent
            StoreError: If the full download fails as well
        """
        limit = limit or self._header_bytes
        try:
            return self._get_range(bucket, key, limit)
        except (StoreError, NotFoundError) as e:
            self._logger.warning(
                f"[DOWNLOAD] Partial download failed for {key}, downloading full file: {e}"
            )
        return self.get_object_bytes(bucket, key)

    def read_object_if_exists(self, bucket: str, key: str) -> Optional[bytes]:
        """Full download that reports an absent object as None instead of raising."""
        try:
            return self.get_object_bytes(bucket, key)
        except NotFoundError:
            return None

    @translate_store_errors
    def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        tags: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Store ``body`` at ``key`` and return its ETag."""
        response = self._s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=dict(tags or {}),
        )
        return _strip_etag(response.get("ETag"))

    @translate_store_errors
    def upsert_metadata(
        self,
        bucket: str,
        key: str,
        merged_tags: Mapping[str, str],
        content_type: Optional[str] = None,
    ) -> None:
        """
        Replace an object's user metadata without touching its bytes.

        Implemented as an in-place copy with ``MetadataDirective=REPLACE``;
        the content type is carried over because REPLACE resets it.
        """
        kwargs: Dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "CopySource": {"Bucket": bucket, "Key": key},
            "Metadata": dict(merged_tags),
            "MetadataDirective": "REPLACE",
        }
        if content_type:
            kwargs["ContentType"] = content_type
        self._s3_client.copy_object(**kwargs)
        self._logger.debug(f"[UPDATE] Updated metadata for {key}")

    @retry_s3_operation(initial_delay=0.5)
    @translate_store_errors
    def list_objects(self, bucket: str, prefix: str = "") -> List[ObjectDescriptor]:
        """List every object under ``prefix``; directory placeholders are skipped."""
        descriptors = []
        paginator = self._s3_client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                key = obj["Key"]
                if key.endswith("/"):
                    continue
                descriptors.append(
                    ObjectDescriptor(
                        bucket=bucket,
                        key=key,
                        size=obj.get("Size", 0),
                        last_modified=obj.get("LastModified"),
                        etag=_strip_etag(obj.get("ETag")),
                    )
                )
        self._logger.debug(f"Listed {len(descriptors)} objects in s3://{bucket}/{prefix}")
        return descriptors

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self._head_bucket(bucket)
        except NotFoundError:
            return False
        return True

    @retry_s3_operation(initial_delay=0.5)
    @translate_store_errors
    def _head_bucket(self, bucket: str) -> None:
        self._s3_client.head_bucket(Bucket=bucket)
