"""Time entry data model.

This module defines the TimeEntry model which represents hours worked on a
project on a specific date, optionally with the start and stop clock times
the hours were derived from.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional, Union

from pydantic import Field, field_validator, model_validator

from protracker.exceptions import ValidationError
from protracker.models.base import BaseDataModel, generate_id, to_decimal
from protracker.utils.time_utils import parse_clock_time


class TimeEntry(BaseDataModel):
    """Represents a single time entry.

    Attributes:
        id: Entry identifier
        project_id: Project the time was spent on
        date: Date of the work
        description: What was worked on
        hours: Hours worked (decimal)
        start_time: Optional start clock time
        stop_time: Optional stop clock time (before start means overnight)
        is_billable: Whether the entry counts toward client billing
        invoice_id: Invoice the entry was billed on, if any
        phase_id: Optional project phase

    Example:
        >>> entry = TimeEntry(
        ...     project_id="p1",
        ...     date=dt.date(2024, 3, 4),
        ...     description="Workshop",
        ...     hours="8",
        ...     start_time="09:00",
        ...     stop_time="17:00",
        ... )
        >>> entry.hours
        Decimal('8')
    """

    id: str = Field(default_factory=generate_id, description="Entry identifier")
    project_id: str = Field(..., min_length=1, description="Project identifier")
    date: dt.date = Field(..., description="Date of work")
    description: str = Field("", description="Work description")
    hours: Decimal = Field(..., gt=0, le=24, description="Hours worked")
    start_time: Optional[dt.time] = Field(None, description="Start clock time")
    stop_time: Optional[dt.time] = Field(None, description="Stop clock time")
    is_billable: bool = Field(True, description="Counts toward client billing")
    invoice_id: Optional[str] = Field(None, description="Invoice identifier")
    phase_id: Optional[str] = Field(None, description="Project phase identifier")

    @field_validator("hours", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return to_decimal(v)

    @field_validator("start_time", "stop_time", mode="before")
    @classmethod
    def parse_time(cls, v, info):
        """Accept HH:MM strings; an empty string means "not entered"."""
        if v is None or v == "":
            return None
        try:
            return parse_clock_time(v, info.field_name)
        except ValidationError as e:
            raise ValueError(e.message)

    @field_validator("invoice_id", "phase_id", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_time_consistency(self) -> "TimeEntry":
        """Validate that hours match the start/stop clock times.

        Uses the reconciler built from the current settings, so the rounding
        mode, equal-times policy and tolerance match the reconcile command.

        Raises:
            ValueError: If hours differ from the clock span by more than
                the configured tolerance
        """
        if self.start_time is None or self.stop_time is None:
            return self

        # Imported here: the calculators and settings both import models
        from protracker.calculators.time_reconciler import TimeFieldReconciler
        from protracker.config.settings import get_config

        reconciler = TimeFieldReconciler.from_config(get_config())
        message = reconciler.check_consistency(
            self.start_time, self.stop_time, self.hours
        )
        if message:
            raise ValueError(message)
        return self

    @property
    def is_invoiced(self) -> bool:
        return self.invoice_id is not None
