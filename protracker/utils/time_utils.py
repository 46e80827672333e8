"""Time calculation utilities for ProTracker.

This module provides low-level utilities for clock-time arithmetic:
- Parsing and formatting HH:MM clock times
- Converting between clock times and minutes since midnight
- Spans between two clock times with overnight wraparound
- Converting between minutes and decimal hours

Clock times carry no date; every operation wraps modulo 24 hours.
"""

import datetime as dt
import re
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Union

from protracker.exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60

HOURS_QUANTUM = Decimal("0.01")

ROUNDING_MODES = {
    "up": ROUND_CEILING,
    "half_up": ROUND_HALF_UP,
}

_CLOCK_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


class EqualTimesPolicy(str, Enum):
    """How a span whose stop time equals its start time is counted."""

    FULL_DAY = "full_day"
    ZERO = "zero"


def resolve_rounding(name: str) -> str:
    """Map a configured rounding name to a decimal rounding mode.

    Args:
        name: ``"up"`` or ``"half_up"``

    Returns:
        The matching ``decimal`` rounding constant

    Raises:
        ValueError: If the name is unknown

    Example:
        >>> resolve_rounding("half_up")
        'ROUND_HALF_UP'
    """
    try:
        return ROUNDING_MODES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown rounding mode: {name}. "
            f"Must be one of {', '.join(sorted(ROUNDING_MODES))}"
        )


def parse_clock_time(value: Union[str, dt.time], field_name: str = "time") -> dt.time:
    """Parse an HH:MM clock time.

    Args:
        value: Clock time string (``"09:30"``, ``"9:30"``) or a dt.time
        field_name: Field name used in the error

    Returns:
        Parsed time (seconds are dropped)

    Raises:
        ValidationError: If the value is not a valid clock time

    Example:
        >>> parse_clock_time("9:05")
        datetime.time(9, 5)
    """
    if isinstance(value, dt.time):
        return value.replace(second=0, microsecond=0)

    match = _CLOCK_TIME_PATTERN.match(str(value).strip())
    if not match:
        raise ValidationError(
            f"Invalid clock time {value!r}, expected HH:MM",
            field=field_name,
            value=value,
        )
    return dt.time(int(match.group(1)), int(match.group(2)))


def format_clock_time(time: dt.time) -> str:
    """Format a clock time as zero-padded HH:MM.

    Example:
        >>> format_clock_time(dt.time(7, 5))
        '07:05'
    """
    return f"{time.hour:02d}:{time.minute:02d}"


def convert_time_to_minutes(time: dt.time) -> int:
    """Convert a dt.time object to minutes since midnight.

    Args:
        time: The time to convert

    Returns:
        Number of minutes since midnight (0-1439)

    Example:
        >>> convert_time_to_minutes(dt.time(9, 30))
        570
        >>> convert_time_to_minutes(dt.time(23, 59))
        1439
    """
    return time.hour * 60 + time.minute


def minutes_to_time(minutes: int) -> dt.time:
    """Convert minutes since midnight to a clock time, wrapping mod 24h.

    Negative values wrap backward past midnight.

    Example:
        >>> minutes_to_time(1500)
        datetime.time(1, 0)
        >>> minutes_to_time(-30)
        datetime.time(23, 30)
    """
    wrapped = minutes % MINUTES_PER_DAY
    return dt.time(wrapped // 60, wrapped % 60)


def calculate_span_minutes(
    start_time: dt.time,
    stop_time: dt.time,
    equal_times_policy: EqualTimesPolicy = EqualTimesPolicy.FULL_DAY,
) -> int:
    """Calculate minutes from start to stop, wrapping forward past midnight.

    Args:
        start_time: Start clock time
        stop_time: Stop clock time
        equal_times_policy: Span counted when both times are equal

    Returns:
        Duration in minutes

    Example:
        >>> calculate_span_minutes(dt.time(9, 0), dt.time(17, 0))
        480
        >>> calculate_span_minutes(dt.time(23, 0), dt.time(7, 0))
        480
        >>> calculate_span_minutes(dt.time(8, 0), dt.time(8, 0))
        1440
    """
    start_minutes = convert_time_to_minutes(start_time)
    stop_minutes = convert_time_to_minutes(stop_time)

    if stop_minutes == start_minutes:
        if equal_times_policy == EqualTimesPolicy.ZERO:
            return 0
        return MINUTES_PER_DAY

    if stop_minutes < start_minutes:
        # Overnight: stop is on the next day
        stop_minutes += MINUTES_PER_DAY

    return stop_minutes - start_minutes


def minutes_to_decimal_hours(minutes: int, rounding: str = ROUND_CEILING) -> Decimal:
    """Convert minutes to decimal hours with 2 decimal precision.

    Args:
        minutes: Number of minutes
        rounding: Decimal rounding mode (default rounds up to the next hundredth)

    Returns:
        Decimal hours quantized to 0.01

    Example:
        >>> minutes_to_decimal_hours(140)
        Decimal('2.34')
        >>> minutes_to_decimal_hours(140, ROUND_HALF_UP)
        Decimal('2.33')
        >>> minutes_to_decimal_hours(480)
        Decimal('8.00')
    """
    hours = Decimal(minutes) / Decimal(60)
    return hours.quantize(HOURS_QUANTUM, rounding=rounding)


def hours_to_minutes(hours: Decimal) -> int:
    """Convert decimal hours to whole minutes, rounding to the nearest minute.

    Rounding to the nearest minute makes a start time plus derived hours
    land back on the stop time the hours were derived from.

    Example:
        >>> hours_to_minutes(Decimal("2.34"))
        140
        >>> hours_to_minutes(Decimal("2.33"))
        140
    """
    return int((hours * 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_decimal_hours(value: Union[str, int, float, Decimal], field_name: str = "hours") -> Decimal:
    """Parse a user-entered hours value.

    Args:
        value: Hours as entered (``"7.5"``, ``7.5``)
        field_name: Field name used in the error

    Returns:
        Hours as Decimal

    Raises:
        ValidationError: If the value is not numeric
    """
    if isinstance(value, bool):
        raise ValidationError("Hours must be a number", field=field_name, value=value)
    try:
        hours = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(
            f"Hours must be a number, got {value!r}", field=field_name, value=value
        )
    if not hours.is_finite():
        raise ValidationError(
            f"Hours must be a finite number, got {value!r}",
            field=field_name,
            value=value,
        )
    return hours
