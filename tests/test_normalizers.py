"""Tests for the EXIF date, GPS and orientation normalizers."""

import math
from datetime import datetime, timedelta, timezone

import pytest
from PIL.TiffImagePlugin import IFDRational

from photo_index.core.normalizers import (
    dms_to_decimal,
    parse_exif_date,
    parse_gps,
    parse_offset,
    parse_orientation,
    rational_to_float,
)


class TestParseExifDate:
    """Tests for parse_exif_date."""

    def test_standard_exif_format(self):
        assert parse_exif_date("2024:12:25 10:30:45") == datetime(
            2024, 12, 25, 10, 30, 45, tzinfo=timezone.utc
        )

    def test_bytes_with_nul_padding(self):
        assert parse_exif_date(b"2023:05:01 08:00:00\x00") == datetime(
            2023, 5, 1, 8, 0, 0, tzinfo=timezone.utc
        )

    def test_iso_t_separator(self):
        assert parse_exif_date("2024-07-21T14:02:24") == datetime(
            2024, 7, 21, 14, 2, 24, tzinfo=timezone.utc
        )

    def test_subseconds_ignored(self):
        assert parse_exif_date("2024:07:21 14:02:24.123") == datetime(
            2024, 7, 21, 14, 2, 24, tzinfo=timezone.utc
        )

    def test_offset_converts_to_utc(self):
        result = parse_exif_date("2024:07:21 14:02:24", "+02:00")
        assert result == datetime(2024, 7, 21, 12, 2, 24, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_negative_offset(self):
        assert parse_exif_date("2024:12:31 22:00:00", "-05:00") == datetime(
            2025, 1, 1, 3, 0, 0, tzinfo=timezone.utc
        )

    def test_invalid_offset_treated_as_utc(self):
        assert parse_exif_date("2024:07:21 14:02:24", "garbage") == datetime(
            2024, 7, 21, 14, 2, 24, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "0000:00:00 00:00:00", "not a date", "2024:13:45 10:00:00", 12345],
    )
    def test_invalid_values_return_none(self, value):
        assert parse_exif_date(value) is None


class TestParseOffset:
    """Tests for parse_offset."""

    def test_with_colon(self):
        assert parse_offset("+05:30") == timezone(timedelta(hours=5, minutes=30))

    def test_without_colon(self):
        assert parse_offset("-0800") == timezone(-timedelta(hours=8))

    @pytest.mark.parametrize("value", [None, "", "Z", "+25:00", "5:00"])
    def test_invalid(self, value):
        assert parse_offset(value) is None


class TestRationalToFloat:
    """Tests for rational_to_float."""

    def test_ifd_rational(self):
        assert rational_to_float(IFDRational(1, 4)) == 0.25

    def test_tuple(self):
        assert rational_to_float((3, 2)) == 1.5

    def test_zero_denominator(self):
        assert rational_to_float((1, 0)) is None

    def test_numeric_string(self):
        assert rational_to_float("12.5") == 12.5

    @pytest.mark.parametrize("value", [None, "abc", float("nan"), float("inf"), object()])
    def test_unusable(self, value):
        assert rational_to_float(value) is None


class TestDmsToDecimal:
    """Tests for dms_to_decimal."""

    def test_southern_hemisphere(self):
        result = dms_to_decimal((40, 26, 46), "S")
        assert result == pytest.approx(-40.446111, abs=1e-6)

    def test_northern_hemisphere(self):
        result = dms_to_decimal((40, 26, 46), "N")
        assert result == pytest.approx(40.446111, abs=1e-6)

    def test_west_bytes_lowercase_ref(self):
        result = dms_to_decimal((79.0, 58.0, 56.0), b"w")
        assert result == pytest.approx(-79.982222, abs=1e-6)

    def test_ifd_rationals(self):
        dms = (IFDRational(51, 1), IFDRational(30, 1), IFDRational(2646, 100))
        assert dms_to_decimal(dms, "N") == pytest.approx(51.50735, abs=1e-5)

    def test_string_triple(self):
        assert dms_to_decimal("10,30,0", "E") == 10.5

    @pytest.mark.parametrize(
        "dms",
        [None, (1, 2), (1, 2, 3, 4), (1, "x", 3), (1, (1, 0), 3), 42],
    )
    def test_invalid_triples(self, dms):
        assert dms_to_decimal(dms, "N") is None


class TestParseGps:
    """Tests for parse_gps."""

    def test_both_halves(self):
        gps = parse_gps((40, 26, 46), "S", (79, 58, 56), "W")
        assert gps is not None
        assert gps.latitude == pytest.approx(-40.446111, abs=1e-6)
        assert gps.longitude == pytest.approx(-79.982222, abs=1e-6)
        assert math.isfinite(gps.latitude)

    def test_half_populated_pair_is_dropped(self):
        assert parse_gps((40, 26, 46), "N", None, "E") is None
        assert parse_gps(None, "N", (79, 58, 56), "W") is None

    def test_out_of_range_dropped(self):
        assert parse_gps((95, 0, 0), "N", (10, 0, 0), "E") is None
        assert parse_gps((10, 0, 0), "N", (190, 0, 0), "E") is None


class TestParseOrientation:
    """Tests for parse_orientation."""

    @pytest.mark.parametrize("value,expected", [(1, 1), (6, 6), ("8", 8), ((3,), 3)])
    def test_valid(self, value, expected):
        assert parse_orientation(value) == expected

    @pytest.mark.parametrize("value", [None, "up", True, [1, 2]])
    def test_invalid(self, value):
        assert parse_orientation(value) is None
