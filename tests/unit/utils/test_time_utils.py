"""Unit tests for clock-time utilities."""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal

import pytest

from protracker.exceptions import ValidationError
from protracker.utils.time_utils import (
    EqualTimesPolicy,
    calculate_span_minutes,
    convert_time_to_minutes,
    format_clock_time,
    hours_to_minutes,
    minutes_to_decimal_hours,
    minutes_to_time,
    parse_clock_time,
    resolve_rounding,
    to_decimal_hours,
)


class TestParseClockTime:
    """Test parsing of HH:MM input."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("09:30", dt.time(9, 30)),
            ("9:05", dt.time(9, 5)),
            (" 23:59 ", dt.time(23, 59)),
            ("00:00", dt.time(0, 0)),
            ("14:30:45", dt.time(14, 30)),
        ],
    )
    def test_valid_times(self, value, expected):
        assert parse_clock_time(value) == expected

    def test_time_object_drops_seconds(self):
        assert parse_clock_time(dt.time(9, 30, 15)) == dt.time(9, 30)

    @pytest.mark.parametrize("value", ["24:00", "9.30", "abc", "", "12:60"])
    def test_invalid_times(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_clock_time(value, "start_time")
        assert exc_info.value.field == "start_time"

    def test_format_round_trip(self):
        assert format_clock_time(parse_clock_time("7:05")) == "07:05"


class TestMinuteConversions:
    """Test conversions between clock times and minutes."""

    def test_convert_time_to_minutes(self):
        assert convert_time_to_minutes(dt.time(0, 0)) == 0
        assert convert_time_to_minutes(dt.time(9, 30)) == 570
        assert convert_time_to_minutes(dt.time(23, 59)) == 1439

    def test_minutes_to_time_wraps_forward(self):
        assert minutes_to_time(1500) == dt.time(1, 0)

    def test_minutes_to_time_wraps_backward(self):
        assert minutes_to_time(-30) == dt.time(23, 30)

    def test_hours_to_minutes_rounds_to_nearest(self):
        assert hours_to_minutes(Decimal("2.34")) == 140
        assert hours_to_minutes(Decimal("2.33")) == 140
        assert hours_to_minutes(Decimal("8")) == 480


class TestCalculateSpanMinutes:
    """Test spans between two clock times."""

    def test_same_day(self):
        assert calculate_span_minutes(dt.time(9, 0), dt.time(17, 0)) == 480

    def test_overnight(self):
        assert calculate_span_minutes(dt.time(22, 0), dt.time(6, 0)) == 480

    def test_equal_times_full_day_by_default(self):
        assert calculate_span_minutes(dt.time(8, 0), dt.time(8, 0)) == 1440

    def test_equal_times_zero_policy(self):
        span = calculate_span_minutes(
            dt.time(8, 0), dt.time(8, 0), EqualTimesPolicy.ZERO
        )
        assert span == 0


class TestDecimalHours:
    """Test minutes to decimal hours conversion and rounding."""

    def test_rounds_up_by_default(self):
        # 09:00 -> 11:20 is 2.333... hours
        assert minutes_to_decimal_hours(140) == Decimal("2.34")

    def test_half_up_rounding(self):
        assert minutes_to_decimal_hours(140, ROUND_HALF_UP) == Decimal("2.33")

    def test_exact_hours_unchanged(self):
        assert minutes_to_decimal_hours(480) == Decimal("8.00")
        assert minutes_to_decimal_hours(90) == Decimal("1.50")

    def test_resolve_rounding(self):
        assert resolve_rounding("half_up") == ROUND_HALF_UP
        with pytest.raises(ValueError, match="Unknown rounding mode"):
            resolve_rounding("down")

    def test_to_decimal_hours(self):
        assert to_decimal_hours("7.5") == Decimal("7.5")
        assert to_decimal_hours(2) == Decimal("2")

    @pytest.mark.parametrize("value", ["seven", "nan", True])
    def test_to_decimal_hours_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError):
            to_decimal_hours(value)
