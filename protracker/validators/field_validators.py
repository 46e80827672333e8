"""Field-level validators for form input.

Each validator records its findings in a ValidationReport instead of
raising, so a form can show every problem at once.
"""

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from protracker.exceptions import ValidationError
from protracker.utils.time_utils import parse_clock_time
from protracker.validators.validation_report import ValidationReport

CURRENCY_PATTERN = re.compile(r"^[A-Za-z]{3}$")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Dates older than this are flagged as likely typos
MAX_AGE_DAYS = 730


class FieldValidators:
    """Collection of field-level validation methods."""

    @staticmethod
    def validate_date(
        value: Optional[dt.date],
        field_name: str,
        report: ValidationReport,
        allow_future: bool = True,
        today: Optional[dt.date] = None,
    ) -> None:
        """Validate a date field.

        Missing dates are errors. Future dates (when not allowed) and dates
        more than two years old are warnings.
        """
        if value is None:
            report.add_error(field_name, "Date is required", None)
            return

        today = today or dt.date.today()
        if not allow_future and value > today:
            report.add_warning(field_name, "Date is in the future", value)
        if value < today - dt.timedelta(days=MAX_AGE_DAYS):
            report.add_warning(field_name, "Date is more than 2 years old", value)

    @staticmethod
    def validate_clock_time(
        value: Optional[str],
        field_name: str,
        report: ValidationReport,
        required: bool = False,
    ) -> None:
        """Validate an ``HH:MM`` string; empty means not entered."""
        if value is None or not str(value).strip():
            if required:
                report.add_error(field_name, "Time is required", value)
            return
        try:
            parse_clock_time(value, field_name)
        except ValidationError as e:
            report.add_error(field_name, e.message, value)

    @staticmethod
    def validate_non_empty_string(
        value: Optional[str],
        field_name: str,
        report: ValidationReport,
    ) -> None:
        if value is None:
            report.add_error(field_name, "Value is required", None)
        elif not isinstance(value, str):
            report.add_error(
                field_name, f"Expected string, got {type(value).__name__}", value
            )
        elif not value.strip():
            report.add_error(field_name, "Value cannot be empty or whitespace", value)

    @staticmethod
    def validate_amount(
        value: Optional[Union[str, int, float, Decimal]],
        field_name: str,
        report: ValidationReport,
        allow_zero: bool = False,
    ) -> None:
        """Validate a monetary amount typed into a form.

        Args:
            value: Raw amount
            field_name: Name of the field being validated
            report: ValidationReport to collect issues
            allow_zero: Whether 0 is accepted
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            report.add_error(field_name, "Amount is required", value)
            return
        if isinstance(value, bool):
            report.add_error(field_name, "Expected number, got bool", value)
            return
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            report.add_error(field_name, "Amount is not a number", value)
            return

        if not amount.is_finite():
            report.add_error(field_name, "Amount must be a finite number", value)
        elif amount < 0:
            report.add_error(field_name, "Amount cannot be negative", value)
        elif amount == 0 and not allow_zero:
            report.add_error(field_name, "Amount must be greater than 0", value)
        elif amount.as_tuple().exponent < -2:
            report.add_warning(
                field_name, "Amount has more than 2 decimal places", value
            )

    @staticmethod
    def validate_currency_code(
        value: Optional[str],
        field_name: str,
        report: ValidationReport,
    ) -> None:
        if value is None or not CURRENCY_PATTERN.match(str(value).strip()):
            report.add_error(
                field_name, "Currency must be a three-letter code such as USD", value
            )

    @staticmethod
    def validate_email(
        value: Optional[str],
        field_name: str,
        report: ValidationReport,
    ) -> None:
        """Validate an optional e-mail address; blank is accepted."""
        if not value:
            return
        if not EMAIL_PATTERN.match(value.strip()):
            report.add_warning(field_name, "E-mail address looks invalid", value)
