"""Deterministic parsers for EXIF dates, GPS coordinates and orientation codes.

Every function here returns ``None`` on malformed input instead of raising, so
the extractor can degrade field by field.
"""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence, Union

from pydantic import ValidationError

from .models import GpsCoordinates

_EXIF_DATE_SEGMENT = re.compile(r"^(\d{4}):(\d{2}):(\d{2})")
_OFFSET = re.compile(r"^([+-])(\d{2}):?(\d{2})$")
_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S")


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return None
    return value.replace("\x00", "").strip()


def parse_offset(value: Any) -> Optional[timezone]:
    """Parse an EXIF ``OffsetTime*`` value such as ``+02:00`` into a timezone."""
    text = _as_text(value)
    if not text:
        return None
    match = _OFFSET.match(text)
    if not match:
        return None
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if delta >= timedelta(hours=24):
        return None
    return timezone(-delta if sign == "-" else delta)


def parse_exif_date(value: Any, offset: Any = None) -> Optional[datetime]:
    """
    Parse an EXIF date string into an aware UTC datetime.

    EXIF writes dates as ``YYYY:MM:DD HH:MM:SS``; the date segment's colons are
    normalized to hyphens before parsing. Without an offset the wall-clock time
    is taken as UTC.

    Args:
        value: Raw tag value (str or bytes)
        offset: Optional matching ``OffsetTime*`` tag value

    Returns:
        The timestamp in UTC, or None if the value cannot be parsed
    """
    text = _as_text(value)
    if not text:
        return None

    normalized = _EXIF_DATE_SEGMENT.sub(r"\1-\2-\3", text)
    # Sub-second or zone suffixes some writers append are ignored
    normalized = normalized[:19]

    parsed = None
    for date_format in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(normalized, date_format)
            break
        except ValueError:
            continue
    if parsed is None:
        return None

    tz = parse_offset(offset) or timezone.utc
    return parsed.replace(tzinfo=tz).astimezone(timezone.utc)


def rational_to_float(value: Any) -> Optional[float]:
    """Convert an EXIF rational (IFDRational, (num, den) tuple, number, str) to float."""
    try:
        if isinstance(value, tuple) and len(value) == 2:
            numerator, denominator = value
            if float(denominator) == 0:
                return None
            result = float(numerator) / float(denominator)
        elif isinstance(value, (bytes, str)):
            result = float(_as_text(value) or "nan")
        else:
            result = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return result if math.isfinite(result) else None


def dms_to_decimal(dms: Union[Sequence[Any], str, None], ref: Any = None) -> Optional[float]:
    """
    Convert a degrees/minutes/seconds triple into signed decimal degrees.

    Args:
        dms: Three rationals, or a ``"d,m,s"`` string
        ref: Hemisphere reference; ``S`` and ``W`` give a negative result

    Returns:
        ``deg + min/60 + sec/3600`` with the hemisphere sign applied, or None
    """
    if dms is None:
        return None
    if isinstance(dms, (str, bytes)):
        parts: Sequence[Any] = (_as_text(dms) or "").split(",")
    else:
        parts = dms
    try:
        if len(parts) != 3:
            return None
    except TypeError:
        return None

    values = [rational_to_float(part) for part in parts]
    if any(v is None for v in values):
        return None
    degrees, minutes, seconds = values
    decimal = degrees + minutes / 60 + seconds / 3600  # type: ignore[operator]

    hemisphere = (_as_text(ref) or "").upper()
    if hemisphere in ("S", "W"):
        decimal = -decimal
    return decimal if math.isfinite(decimal) else None


def parse_gps(lat: Any, lat_ref: Any, lon: Any, lon_ref: Any) -> Optional[GpsCoordinates]:
    """Resolve both halves of a GPS position, or nothing at all."""
    latitude = dms_to_decimal(lat, lat_ref)
    longitude = dms_to_decimal(lon, lon_ref)
    if latitude is None or longitude is None:
        return None
    try:
        return GpsCoordinates(latitude=latitude, longitude=longitude)
    except ValidationError:
        return None


def parse_orientation(value: Any) -> Optional[int]:
    """Pass the raw EXIF orientation code through as an int."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (tuple, list)) and len(value) == 1:
        value = value[0]
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
