"""Start/stop/hours reconciliation for time entry forms.

Given any two of start clock time, stop clock time and decimal hours, the
reconciler derives the third:

- start + stop  -> hours (overnight spans wrap forward 24 hours)
- start + hours -> stop (wrapped mod 24 hours)
- stop + hours  -> start (wrapping backward past midnight)

When all three are supplied it checks that they agree and reports a
mismatch without overwriting what the user typed.
"""

import datetime as dt
import logging
from dataclasses import dataclass, replace
from decimal import ROUND_CEILING, Decimal
from typing import Literal, Optional, Union

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

logger = logging.getLogger(__name__)

TimeField = Literal["start_time", "stop_time", "hours"]

TIME_FIELDS = ("start_time", "stop_time", "hours")

DEFAULT_TOLERANCE_HOURS = Decimal("0.01")

MAX_HOURS = Decimal("24")


@dataclass(frozen=True)
class TimeFields:
    """The three reconcilable fields of a time entry form.

    Attributes:
        start_time: Start clock time, or None when not entered
        stop_time: Stop clock time, or None when not entered
        hours: Decimal hours, or None when not entered
    """

    start_time: Optional[dt.time] = None
    stop_time: Optional[dt.time] = None
    hours: Optional[Decimal] = None

    @classmethod
    def from_input(
        cls,
        start_time: Union[str, dt.time, None] = None,
        stop_time: Union[str, dt.time, None] = None,
        hours: Union[str, int, float, Decimal, None] = None,
    ) -> "TimeFields":
        """Build fields from raw form input.

        Empty strings count as "not entered".

        Raises:
            ValidationError: If a clock time or the hours value is malformed
        """
        return cls(
            start_time=_parse_optional_time(start_time, "start_time"),
            stop_time=_parse_optional_time(stop_time, "stop_time"),
            hours=_parse_optional_hours(hours),
        )

    @property
    def present(self) -> tuple:
        """Names of the fields that have a value, in canonical order."""
        return tuple(name for name in TIME_FIELDS if getattr(self, name) is not None)

    def as_strings(self) -> dict:
        """Render the fields the way a form displays them."""
        rendered = {"start_time": "", "stop_time": "", "hours": ""}
        if self.start_time is not None:
            rendered["start_time"] = format_clock_time(self.start_time)
        if self.stop_time is not None:
            rendered["stop_time"] = format_clock_time(self.stop_time)
        if self.hours is not None:
            rendered["hours"] = f"{self.hours:.2f}"
        return rendered


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of reconciling a set of time fields.

    Attributes:
        fields: The updated field set
        derived_field: Name of the field that was computed, if any
        is_consistent: False when all three fields disagree
        message: Description of the mismatch when inconsistent
        expected_hours: Hours implied by the clock times, when both are set
    """

    fields: TimeFields
    derived_field: Optional[str] = None
    is_consistent: bool = True
    message: Optional[str] = None
    expected_hours: Optional[Decimal] = None

    @property
    def is_valid(self) -> bool:
        return self.is_consistent

    def raise_for_inconsistency(self) -> None:
        """Block submission of inconsistent fields.

        Raises:
            ValidationError: If the fields are inconsistent
        """
        if not self.is_consistent:
            raise ValidationError(
                self.message or "Time fields are inconsistent",
                field="hours",
                value=self.fields.hours,
                recovery_hint="Clear one of start time, stop time or hours",
            )


class TimeFieldReconciler:
    """Derives and cross-checks start time, stop time and hours.

    Args:
        rounding: Decimal rounding mode for derived hours. The default rounds
            up to the next hundredth, so 09:00 to 11:20 gives 2.34.
        equal_times_policy: Whether equal start and stop times mean a full
            24-hour span or a zero-length one
        tolerance: Largest accepted difference between entered and derived
            hours

    Example:
        >>> reconciler = TimeFieldReconciler()
        >>> result = reconciler.reconcile(TimeFields.from_input("09:00", "11:20"))
        >>> result.fields.hours
        Decimal('2.34')
    """

    def __init__(
        self,
        rounding: str = ROUND_CEILING,
        equal_times_policy: EqualTimesPolicy = EqualTimesPolicy.FULL_DAY,
        tolerance: Decimal = DEFAULT_TOLERANCE_HOURS,
    ):
        self.rounding = rounding
        self.equal_times_policy = EqualTimesPolicy(equal_times_policy)
        self.tolerance = tolerance

    @classmethod
    def from_config(cls, config) -> "TimeFieldReconciler":
        """Create a reconciler from application settings."""
        return cls(
            rounding=resolve_rounding(config.hours_rounding),
            equal_times_policy=EqualTimesPolicy(config.equal_times_policy),
            tolerance=config.time_tolerance_hours,
        )

    # -- single derivations -------------------------------------------------

    def hours_between(
        self, start_time: dt.time, stop_time: dt.time, overnight: bool = True
    ) -> Decimal:
        """Hours from start to stop.

        Args:
            start_time: Start clock time
            stop_time: Stop clock time
            overnight: Whether a stop before the start means the next day.
                With ``overnight=False`` such an entry is rejected.

        Returns:
            Hours rounded to 2 decimal places

        Raises:
            ValidationError: If stop precedes start on a same-day entry
        """
        if not overnight and stop_time < start_time:
            raise ValidationError(
                f"End time ({format_clock_time(stop_time)}) must be after start "
                f"time ({format_clock_time(start_time)})",
                field="stop_time",
                value=stop_time,
                recovery_hint="Mark the entry as overnight or correct the times",
            )
        span = calculate_span_minutes(start_time, stop_time, self.equal_times_policy)
        return minutes_to_decimal_hours(span, self.rounding)

    def stop_time_for(self, start_time: dt.time, hours: Decimal) -> dt.time:
        """Stop time reached after working ``hours`` from ``start_time``.

        Raises:
            ValidationError: If hours are not in (0, 24]
        """
        self._check_hours(hours)
        minutes = convert_time_to_minutes(start_time) + hours_to_minutes(hours)
        return minutes_to_time(minutes)

    def start_time_for(self, stop_time: dt.time, hours: Decimal) -> dt.time:
        """Start time that ends at ``stop_time`` after ``hours``.

        Subtracting past midnight wraps back into the previous day.

        Raises:
            ValidationError: If hours are not in (0, 24]
        """
        self._check_hours(hours)
        minutes = convert_time_to_minutes(stop_time) - hours_to_minutes(hours)
        return minutes_to_time(minutes)

    def check_consistency(
        self, start_time: dt.time, stop_time: dt.time, hours: Decimal
    ) -> Optional[str]:
        """Compare entered hours against the clock span.

        Returns:
            A mismatch message, or None when the fields agree
        """
        expected = self.hours_between(start_time, stop_time)
        if abs(expected - hours) > self.tolerance:
            return (
                f"Time mismatch: Start/Stop times indicate {expected:.2f} hours, "
                f"but {hours:.2f} hours entered"
            )
        return None

    # -- form-level operations ----------------------------------------------

    def reconcile(
        self,
        fields: TimeFields,
        derive: Optional[TimeField] = None,
        overnight: bool = True,
    ) -> ReconciliationResult:
        """Derive the missing field, or check all three for consistency.

        Args:
            fields: Current form fields
            derive: Field to recompute from the other two. When omitted, the
                single missing field is derived; with all three present
                nothing is derived and consistency is checked instead.
            overnight: Whether a stop before start may wrap to the next day

        Returns:
            ReconciliationResult with the updated fields

        Raises:
            ValidationError: If the driving fields are invalid (stop before
                start on a same-day entry, hours outside (0, 24])
        """
        present = fields.present

        if derive is None:
            missing = [name for name in TIME_FIELDS if name not in present]
            if len(missing) == 1:
                derive = missing[0]
            elif not missing:
                return self._check_all(fields, overnight)
            else:
                # Fewer than two fields: nothing to derive yet
                return ReconciliationResult(fields=fields)

        if derive not in TIME_FIELDS:
            raise ValueError(f"Unknown time field: {derive}")

        drivers = [name for name in TIME_FIELDS if name != derive]
        absent = [name for name in drivers if getattr(fields, name) is None]
        if absent:
            raise ValidationError(
                f"Cannot derive {derive} without {' and '.join(absent)}",
                field=derive,
            )

        if derive == "hours":
            hours = self.hours_between(fields.start_time, fields.stop_time, overnight)
            updated = replace(fields, hours=hours)
            expected = hours
        elif derive == "stop_time":
            updated = replace(
                fields, stop_time=self.stop_time_for(fields.start_time, fields.hours)
            )
            expected = fields.hours
        else:
            updated = replace(
                fields, start_time=self.start_time_for(fields.stop_time, fields.hours)
            )
            expected = fields.hours

        logger.debug(f"Derived {derive}: {updated.as_strings()[derive]}")
        return ReconciliationResult(
            fields=updated, derived_field=derive, expected_hours=expected
        )

    def apply_edit(
        self,
        fields: TimeFields,
        field: TimeField,
        value: Union[str, dt.time, int, float, Decimal, None],
        overnight: bool = True,
    ) -> ReconciliationResult:
        """Apply a single field edit and re-derive the dependent field.

        The edited field and its partner become the driving pair:

        - editing a clock time while the other clock time is set derives hours
        - editing hours while a start time is set derives the stop time
        - editing hours while only a stop time is set derives the start time

        Clearing a field (empty value) derives nothing.

        Args:
            fields: Fields before the edit
            field: Name of the edited field
            value: New raw value
            overnight: Whether a stop before start may wrap to the next day

        Returns:
            ReconciliationResult with the edited and derived fields

        Raises:
            ValidationError: If the edited value or driving pair is invalid
        """
        if field == "hours":
            updated = replace(fields, hours=_parse_optional_hours(value))
        elif field in ("start_time", "stop_time"):
            updated = replace(fields, **{field: _parse_optional_time(value, field)})
        else:
            raise ValueError(f"Unknown time field: {field}")

        if getattr(updated, field) is None:
            return ReconciliationResult(fields=updated)

        if field in ("start_time", "stop_time"):
            other = "stop_time" if field == "start_time" else "start_time"
            if getattr(updated, other) is not None:
                return self.reconcile(updated, derive="hours", overnight=overnight)
            if updated.hours is not None and updated.hours > 0:
                return self.reconcile(updated, derive=other, overnight=overnight)
            return ReconciliationResult(fields=updated)

        if updated.hours <= 0:
            return ReconciliationResult(fields=updated)
        if updated.start_time is not None:
            return self.reconcile(updated, derive="stop_time", overnight=overnight)
        if updated.stop_time is not None:
            return self.reconcile(updated, derive="start_time", overnight=overnight)
        return ReconciliationResult(fields=updated)

    def _check_all(self, fields: TimeFields, overnight: bool) -> ReconciliationResult:
        expected = self.hours_between(fields.start_time, fields.stop_time, overnight)
        message = self.check_consistency(
            fields.start_time, fields.stop_time, fields.hours
        )
        if message:
            logger.debug(message)
        return ReconciliationResult(
            fields=fields,
            is_consistent=message is None,
            message=message,
            expected_hours=expected,
        )

    @staticmethod
    def _check_hours(hours: Decimal) -> None:
        if hours <= 0 or hours > MAX_HOURS:
            raise ValidationError(
                f"Hours must be greater than 0 and at most {MAX_HOURS}, got {hours}",
                field="hours",
                value=hours,
            )


def _parse_optional_time(
    value: Union[str, dt.time, None], field_name: str
) -> Optional[dt.time]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_clock_time(value, field_name)


def _parse_optional_hours(
    value: Union[str, int, float, Decimal, None]
) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal_hours(value)
