"""Invoice, line item, payment and biller models.

An invoice's ``total_amount`` is a snapshot taken when the invoice is
created. Later edits to the time entries it was built from never change it.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

from pydantic import Field, field_validator, model_validator

from protracker.models.base import BaseDataModel, generate_id, to_decimal
from protracker.models.currency import normalize_currency_code


class InvoiceStatus(str, Enum):
    """Workflow status of an invoice."""

    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentStatus(str, Enum):
    """Settlement status of an invoice."""

    UNPAID = "Unpaid"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"


class InvoiceLineItem(BaseDataModel):
    """Snapshot of one billed time entry.

    Attributes:
        time_entry_id: Source time entry
        project_id: Project of the entry
        date: Date of the work
        description: Work description
        hours: Hours billed
        hourly_rate: Rate applied
        currency: Currency of the rate
        amount: hours × hourly_rate
    """

    time_entry_id: str
    project_id: str
    date: dt.date
    description: str = ""
    hours: Decimal
    hourly_rate: Decimal
    currency: str
    amount: Decimal


class Invoice(BaseDataModel):
    """Represents an invoice issued to a client.

    An invoice is either built from time entries (``time_entry_ids`` and
    ``line_items`` set) or manual (``is_manual`` with a fixed amount and no
    entries).

    Example:
        >>> invoice = Invoice(
        ...     invoice_number="INV-0001",
        ...     client_id="c1",
        ...     issue_date=dt.date(2024, 3, 1),
        ...     due_date=dt.date(2024, 3, 31),
        ...     currency="USD",
        ...     total_amount=Decimal("1200.00"),
        ...     is_manual=True,
        ... )
        >>> invoice.balance_due
        Decimal('1200.00')
    """

    id: str = Field(default_factory=generate_id, description="Invoice identifier")
    invoice_number: str = Field(..., min_length=1, description="Invoice number")
    client_id: str = Field(..., min_length=1, description="Client identifier")
    issue_date: dt.date = Field(..., description="Issue date")
    due_date: dt.date = Field(..., description="Due date")
    status: InvoiceStatus = Field(InvoiceStatus.DRAFT, description="Invoice status")
    time_entry_ids: List[str] = Field(default_factory=list, description="Entries")
    line_items: List[InvoiceLineItem] = Field(
        default_factory=list, description="Snapshot of billed entries"
    )
    is_manual: bool = Field(False, description="Fixed amount, no time entries")
    currency: str = Field("USD", description="Invoice currency")
    total_amount: Decimal = Field(..., ge=0, description="Snapshot total")
    paid_amount: Decimal = Field(Decimal("0.00"), ge=0, description="Amount paid")
    payment_status: PaymentStatus = Field(
        PaymentStatus.UNPAID, description="Payment status"
    )
    notes: Optional[str] = Field(None, description="Notes printed on the invoice")

    @field_validator("total_amount", "paid_amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return to_decimal(v)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return normalize_currency_code(v)

    @model_validator(mode="after")
    def validate_dates_and_source(self) -> "Invoice":
        """Validate due date ordering and manual/entry exclusivity.

        Raises:
            ValueError: If the due date precedes the issue date, or a manual
                invoice lists time entries
        """
        if self.due_date < self.issue_date:
            raise ValueError(
                f"due_date ({self.due_date}) must not be before "
                f"issue_date ({self.issue_date})"
            )
        if self.is_manual and self.time_entry_ids:
            raise ValueError("A manual invoice cannot reference time entries")
        return self

    @property
    def balance_due(self) -> Decimal:
        return max(self.total_amount - self.paid_amount, Decimal("0.00"))


class Payment(BaseDataModel):
    """A payment received against an invoice."""

    id: str = Field(default_factory=generate_id, description="Payment identifier")
    invoice_id: str = Field(..., min_length=1, description="Invoice identifier")
    amount: Decimal = Field(..., gt=0, description="Amount received")
    date: dt.date = Field(..., description="Payment date")
    method: Optional[str] = Field(None, description="Payment method")
    note: Optional[str] = Field(None, description="Free-form note")

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        return to_decimal(v)


class BillerInfo(BaseDataModel):
    """Details of the freelancer issuing invoices."""

    name: str = ""
    address: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
