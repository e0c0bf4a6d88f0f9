"""Fake implementations for testing purposes."""

import hashlib
import io
import re
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

from botocore.exceptions import ClientError
from PIL import Image
from PIL.ExifTags import GPS, IFD, Base
from pillow_heif import register_heif_opener

register_heif_opener()

_RANGE = re.compile(r"^bytes=(\d+)-(\d*)$")


def _client_error(code: str, operation: str, message: str = "") -> ClientError:
    status = 404 if code in ("NoSuchKey", "NoSuchBucket", "404") else 500
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@dataclass
class S3Object:
    """Fake S3 object for testing."""

    key: str
    body: bytes
    content_type: str = "image/jpeg"
    metadata: Dict[str, str] = field(default_factory=dict)
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def size(self) -> int:
        return len(self.body)

    @property
    def etag(self) -> str:
        return f'"{hashlib.md5(self.body).hexdigest()}"'


@dataclass
class S3Bucket:
    """Fake S3 bucket for testing."""

    name: str
    objects: Dict[str, S3Object] = field(default_factory=dict)

    def add_object(
        self,
        key: str,
        body: bytes,
        content_type: str = "image/jpeg",
        metadata: Optional[Dict[str, str]] = None,
    ) -> S3Object:
        """Add object to bucket."""
        obj = S3Object(key=key, body=body, content_type=content_type, metadata=dict(metadata or {}))
        self.objects[key] = obj
        return obj

    def get_object(self, key: str) -> Optional[S3Object]:
        """Get object from bucket."""
        return self.objects.get(key)

    def list_objects(self, prefix: str = "") -> List[S3Object]:
        """List objects with optional prefix filter, sorted by key like S3."""
        return [obj for key, obj in sorted(self.objects.items()) if key.startswith(prefix)]


class _StreamingBody(io.BytesIO):
    """Minimal stand-in for botocore's StreamingBody."""


class FakeS3Client:
    """
    In-memory, thread-safe fake of the boto3 S3 client.

    Failures are raised as botocore ``ClientError`` with real S3 error codes
    so the gateway's error translation is exercised as in production.
    """

    def __init__(self):
        self.buckets: Dict[str, S3Bucket] = {}
        self.operation_count = 0
        self.calls: List[Tuple[str, str]] = []
        self.should_fail = False
        self.failure_code = "ServiceUnavailable"
        self.fail_keys: Dict[str, Set[str]] = {}
        self.supports_ranges = True
        self.delay_seconds = 0.0
        self.page_size = 1000
        self._lock = threading.Lock()

    def create_bucket(self, name: str) -> S3Bucket:
        """Create a new bucket."""
        bucket = S3Bucket(name=name)
        self.buckets[name] = bucket
        return bucket

    def get_bucket(self, name: str) -> Optional[S3Bucket]:
        """Get bucket by name."""
        return self.buckets.get(name)

    def set_failure_mode(self, should_fail: bool, code: str = "ServiceUnavailable") -> None:
        """Make every operation fail with ``code``."""
        self.should_fail = should_fail
        self.failure_code = code

    def fail_key(self, key: str, *operations: str) -> None:
        """Make the given operations (all when omitted) fail for one key."""
        self.fail_keys[key] = set(operations) or {"*"}

    def set_delay(self, seconds: float) -> None:
        """Set artificial latency for every operation."""
        self.delay_seconds = seconds

    def calls_for(self, operation: str) -> List[str]:
        with self._lock:
            return [key for op, key in self.calls if op == operation]

    def _enter(self, operation: str, bucket_name: str, key: str = "") -> S3Bucket:
        with self._lock:
            self.operation_count += 1
            self.calls.append((operation, key))

        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)

        if self.should_fail:
            raise _client_error(self.failure_code, operation)

        failing = self.fail_keys.get(key)
        if failing and ("*" in failing or operation in failing):
            raise _client_error("InternalError", operation, f"Simulated failure for {key}")

        bucket = self.buckets.get(bucket_name)
        if bucket is None:
            raise _client_error("NoSuchBucket", operation, f"Bucket {bucket_name} not found")
        return bucket

    def _require(self, bucket: S3Bucket, key: str, operation: str, code: str = "NoSuchKey") -> S3Object:
        obj = bucket.get_object(key)
        if obj is None:
            raise _client_error(code, operation, f"Object {key} not found in bucket {bucket.name}")
        return obj

    def head_bucket(self, Bucket: str) -> Dict[str, Any]:
        self._enter("HeadBucket", Bucket)
        return {"ResponseMetadata": {"HTTPStatusCode": 200}}

    def head_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        bucket = self._enter("HeadObject", Bucket, Key)
        obj = self._require(bucket, Key, "HeadObject", code="404")
        return {
            "ContentLength": obj.size,
            "ContentType": obj.content_type,
            "ETag": obj.etag,
            "LastModified": obj.last_modified,
            "Metadata": dict(obj.metadata),
        }

    def get_object(self, Bucket: str, Key: str, Range: Optional[str] = None) -> Dict[str, Any]:
        operation = "GetObjectRange" if Range else "GetObject"
        bucket = self._enter(operation, Bucket, Key)
        obj = self._require(bucket, Key, "GetObject")

        body = obj.body
        if Range is not None:
            match = _RANGE.match(Range)
            if not self.supports_ranges or match is None:
                raise _client_error("InvalidRange", "GetObject", "Range requests not supported")
            start = int(match.group(1))
            end = int(match.group(2)) if match.group(2) else len(body) - 1
            body = body[start : end + 1]

        return {
            "Body": _StreamingBody(body),
            "ContentType": obj.content_type,
            "ContentLength": len(body),
            "ETag": obj.etag,
            "Metadata": dict(obj.metadata),
        }

    def put_object(
        self,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str = "binary/octet-stream",
        Metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        bucket = self._enter("PutObject", Bucket, Key)
        with self._lock:
            obj = bucket.add_object(Key, bytes(Body), ContentType, Metadata)
        return {"ETag": obj.etag, "ResponseMetadata": {"HTTPStatusCode": 200}}

    def copy_object(
        self,
        Bucket: str,
        Key: str,
        CopySource: Dict[str, str],
        Metadata: Optional[Dict[str, str]] = None,
        MetadataDirective: str = "COPY",
        ContentType: Optional[str] = None,
    ) -> Dict[str, Any]:
        bucket = self._enter("CopyObject", Bucket, Key)
        source_bucket = self.buckets.get(CopySource["Bucket"])
        if source_bucket is None:
            raise _client_error("NoSuchBucket", "CopyObject")
        source = self._require(source_bucket, CopySource["Key"], "CopyObject")

        if MetadataDirective == "REPLACE":
            metadata = dict(Metadata or {})
            content_type = ContentType or "binary/octet-stream"
        else:
            metadata = dict(source.metadata)
            content_type = source.content_type

        with self._lock:
            obj = bucket.add_object(Key, source.body, content_type, metadata)
        return {"CopyObjectResult": {"ETag": obj.etag}}

    def get_paginator(self, operation_name: str) -> "FakeS3Paginator":
        """Get paginator for S3 operations."""
        return FakeS3Paginator(self, operation_name)


class FakeS3Paginator:
    """Fake ``list_objects_v2`` paginator."""

    def __init__(self, s3_client: FakeS3Client, operation_name: str):
        self.s3_client = s3_client
        self.operation_name = operation_name

    def paginate(self, Bucket: str, Prefix: str = "") -> List[Dict[str, Any]]:
        bucket = self.s3_client._enter("ListObjectsV2", Bucket)
        objects = bucket.list_objects(Prefix)
        size = self.s3_client.page_size
        pages = [
            {
                "Contents": [
                    {
                        "Key": obj.key,
                        "Size": obj.size,
                        "ETag": obj.etag,
                        "LastModified": obj.last_modified,
                    }
                    for obj in objects[i : i + size]
                ]
            }
            for i in range(0, len(objects), size)
        ]
        return pages or [{"KeyCount": 0}]


class FakeLogger:
    """Fake logger for testing with support for LogContext."""

    def __init__(self, name: str = "test_logger"):
        self.name = name
        self.logs: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def _log(self, level: str, message: str, context: Any = None, **kwargs: Any) -> None:
        log_entry = {"level": level, "message": message, "timestamp": time.time(), **kwargs}

        if context is not None:
            for attribute in ("correlation_id", "operation", "component"):
                if hasattr(context, attribute):
                    log_entry[attribute] = getattr(context, attribute)
            if hasattr(context, "metadata"):
                log_entry.update(context.metadata)

        with self._lock:
            self.logs.append(log_entry)

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("DEBUG", message, context, **kwargs)

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("INFO", message, context, **kwargs)

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("WARNING", message, context, **kwargs)

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("ERROR", message, context, **kwargs)

    def get_logs(self, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get logged messages, optionally filtered by level."""
        with self._lock:
            if level:
                return [log for log in self.logs if log["level"] == level]
            return list(self.logs)

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [log["message"] for log in self.get_logs(level)]

    def clear_logs(self) -> None:
        with self._lock:
            self.logs.clear()


def create_test_image(
    width: int = 64,
    height: int = 48,
    image_format: str = "JPEG",
    make: Optional[str] = None,
    model: Optional[str] = None,
    date_time: Optional[str] = None,
    date_time_original: Optional[str] = None,
    date_time_digitized: Optional[str] = None,
    offset_time_original: Optional[str] = None,
    orientation: Optional[int] = None,
    gps: Optional[Tuple[Tuple[float, float, float], str, Tuple[float, float, float], str]] = None,
    noisy: bool = False,
) -> bytes:
    """
    Create an in-memory image carrying real EXIF tags.

    Args:
        gps: ``((d, m, s), lat_ref, (d, m, s), lon_ref)``
        noisy: Fill with noise so the encoded file is large
    """
    if noisy:
        image = Image.effect_noise((width, height), 100).convert("RGB")
    else:
        image = Image.new("RGB", (width, height), color="red")

    exif = Image.Exif()
    if make is not None:
        exif[Base.Make] = make
    if model is not None:
        exif[Base.Model] = model
    if date_time is not None:
        exif[Base.DateTime] = date_time
    if orientation is not None:
        exif[Base.Orientation] = orientation

    exif_ifd: Dict[int, Any] = {}
    if date_time_original is not None:
        exif_ifd[Base.DateTimeOriginal] = date_time_original
    if date_time_digitized is not None:
        exif_ifd[Base.DateTimeDigitized] = date_time_digitized
    if offset_time_original is not None:
        exif_ifd[Base.OffsetTimeOriginal] = offset_time_original
    if exif_ifd:
        exif[IFD.Exif] = exif_ifd

    if gps is not None:
        lat, lat_ref, lon, lon_ref = gps
        exif[IFD.GPSInfo] = {
            GPS.GPSLatitudeRef: lat_ref,
            GPS.GPSLatitude: lat,
            GPS.GPSLongitudeRef: lon_ref,
            GPS.GPSLongitude: lon,
        }

    output = io.BytesIO()
    save_kwargs: Dict[str, Any] = {"format": image_format}
    if len(exif):
        save_kwargs["exif"] = exif.tobytes() if image_format == "HEIF" else exif
    if image_format == "JPEG":
        save_kwargs["quality"] = 95
    image.save(output, **save_kwargs)
    return output.getvalue()


def create_large_test_image(min_size: int = 128 * 1024, **exif_kwargs: Any) -> bytes:
    """A noisy JPEG with EXIF that is at least ``min_size`` bytes."""
    side = 256
    while True:
        data = create_test_image(side, side, noisy=True, **exif_kwargs)
        if len(data) >= min_size:
            return data
        side *= 2


def setup_test_s3_environment() -> FakeS3Client:
    """Set up a photo bucket with EXIF-bearing images across a few folders."""
    s3_client = FakeS3Client()

    bucket = s3_client.create_bucket("photos")
    bucket.add_object(
        "2024/beach.jpg",
        create_test_image(
            make="Canon",
            model="EOS R5",
            date_time_original="2024:07:21 14:02:24",
            orientation=1,
            gps=((40.0, 26.0, 46.0), "S", (79.0, 58.0, 56.0), "W"),
        ),
    )
    bucket.add_object(
        "2024/city.jpeg",
        create_test_image(make="Apple", model="iPhone 15", date_time="2024:12:25 10:30:45"),
    )
    bucket.add_object("2024/plain.png", create_test_image(image_format="PNG"), "image/png")
    bucket.add_object("2024/beach_thumb.jpg", create_test_image(make="Canon"))
    bucket.add_object(
        "2023/trip/mountain.JPG",
        create_test_image(make="Nikon", model="Z6", date_time_original="2023:05:01 08:00:00"),
    )
    bucket.add_object("loose.jpg", create_test_image(make="Sony"))

    # Non-image files are ignored by the scanner
    bucket.add_object("2024/notes.txt", b"not an image", "text/plain")
    bucket.add_object("2024/video.mov", b"\x00\x00\x00\x18ftypqt  ", "video/quicktime")

    return s3_client
