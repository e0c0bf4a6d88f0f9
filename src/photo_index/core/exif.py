"""EXIF extraction: image bytes in, ExifRecord out."""

import io
import logging
from typing import Any, Mapping, Optional

from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import GPS, IFD, Base
from pillow_heif import register_heif_opener

from .exceptions import ExifParseError
from .logging_config import get_logger
from .models import ExifRecord
from .normalizers import parse_exif_date, parse_gps, parse_orientation

# Capture-time tags in precedence order, each with its matching offset tag
DATE_TAG_PRECEDENCE = (
    ("DateTimeOriginal", Base.DateTimeOriginal, Base.OffsetTimeOriginal),
    ("DateTime", Base.DateTime, Base.OffsetTime),
    ("DateTimeDigitized", Base.DateTimeDigitized, Base.OffsetTimeDigitized),
)

# HEIC/HEIF uploads from phones go through the same Pillow path
register_heif_opener()


def _clean_text(value: Any) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if not isinstance(value, str):
        return None
    value = value.replace("\x00", "").strip()
    return value or None


class ExifExtractor:
    """Pure EXIF extractor with no I/O dependencies."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or get_logger("photo-index.exif")

    def extract(self, image_bytes: bytes, source: str = "") -> ExifRecord:
        """
        Extract capture metadata from (possibly partial) image bytes.

        Never raises: anything Pillow cannot read degrades to an empty record
        with ``has_exif=False``.
        """
        try:
            tags = self._read_tags(image_bytes)
            return self._build_record(tags)
        except (ExifParseError, UnidentifiedImageError) as e:
            self._logger.warning(f"[EXIF] No readable image in {source or '<bytes>'}: {e}")
            return ExifRecord.empty()
        except Exception as e:  # noqa: BLE001
            # Truncated headers surface as struct.error, EOFError, SyntaxError...
            self._logger.warning(
                f"[EXIF] Failed to extract EXIF from {source or '<bytes>'}: "
                f"{type(e).__name__}: {e}"
            )
            return ExifRecord.empty()

    def _read_tags(self, image_bytes: bytes) -> Mapping[str, Any]:
        if not image_bytes:
            raise ExifParseError("empty image buffer")

        # No image.load(): the pixel data may be cut off by a ranged fetch
        with Image.open(io.BytesIO(image_bytes)) as image:
            exif = image.getexif()
            exif_ifd = exif.get_ifd(IFD.Exif)
            gps_ifd = exif.get_ifd(IFD.GPSInfo)

            def lookup(tag: int) -> Any:
                # Some writers put Exif-IFD tags in IFD0
                value = exif_ifd.get(tag)
                return value if value is not None else exif.get(tag)

            return {
                "make": exif.get(Base.Make),
                "model": exif.get(Base.Model),
                "orientation": exif.get(Base.Orientation),
                "dates": [
                    (name, lookup(tag), lookup(offset_tag))
                    for name, tag, offset_tag in DATE_TAG_PRECEDENCE
                ],
                "gps": (
                    gps_ifd.get(GPS.GPSLatitude),
                    gps_ifd.get(GPS.GPSLatitudeRef),
                    gps_ifd.get(GPS.GPSLongitude),
                    gps_ifd.get(GPS.GPSLongitudeRef),
                ),
            }

    def _build_record(self, tags: Mapping[str, Any]) -> ExifRecord:
        date_taken = None
        for name, raw_date, raw_offset in tags["dates"]:
            if _clean_text(raw_date) is None:
                continue
            # First present tag wins even when it fails to parse
            date_taken = parse_exif_date(raw_date, raw_offset)
            if date_taken is None:
                self._logger.debug(f"[EXIF] Unparseable {name} value: {raw_date!r}")
            break

        lat, lat_ref, lon, lon_ref = tags["gps"]
        gps = None
        if lat is not None and lon is not None:
            gps = parse_gps(lat, lat_ref, lon, lon_ref)

        return ExifRecord(
            date_taken=date_taken,
            camera_make=_clean_text(tags["make"]),
            camera_model=_clean_text(tags["model"]),
            gps_coordinates=gps,
            orientation=parse_orientation(tags["orientation"]),
        )


def extract_exif(image_bytes: bytes, source: str = "") -> ExifRecord:
    """Module-level shortcut for ``ExifExtractor().extract``."""
    return ExifExtractor().extract(image_bytes, source)
