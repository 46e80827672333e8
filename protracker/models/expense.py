"""Expense and receipt data models.

Expenses carry their own currency and a caller-driven status; no state
machine restricts how the status moves between values.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

from pydantic import Field, field_validator, model_validator

from protracker.models.base import BaseDataModel, generate_id, to_decimal
from protracker.models.currency import normalize_currency_code


class ExpenseStatus(str, Enum):
    """Reimbursement status of an expense."""

    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REIMBURSED = "Reimbursed"
    REJECTED = "Rejected"


class ExpenseCategory(str, Enum):
    """Expense categories offered in the expense form."""

    TRAVEL = "Travel"
    MEALS = "Meals"
    ACCOMMODATION = "Accommodation"
    SOFTWARE = "Software"
    HARDWARE = "Hardware"
    OFFICE_SUPPLIES = "Office Supplies"
    PROFESSIONAL_SERVICES = "Professional Services"
    MARKETING = "Marketing"
    TRAINING = "Training"
    OTHER = "Other"


class Receipt(BaseDataModel):
    """A receipt file attached to an expense.

    The extracted fields are filled in by the OCR service when extraction
    succeeds and stay empty otherwise.
    """

    id: str = Field(default_factory=generate_id, description="Receipt identifier")
    file_name: str = Field(..., min_length=1, description="Original file name")
    path: str = Field(..., min_length=1, description="Stored file location")
    uploaded_at: dt.datetime = Field(
        default_factory=dt.datetime.now, description="Upload timestamp"
    )
    merchant: Optional[str] = Field(None, description="Extracted merchant name")
    extracted_amount: Optional[Decimal] = Field(None, description="Extracted total")
    extracted_currency: Optional[str] = Field(None, description="Extracted currency")
    extracted_date: Optional[dt.date] = Field(None, description="Extracted date")


class Expense(BaseDataModel):
    """Represents a business expense.

    Attributes:
        id: Expense identifier
        date: Date the expense was incurred
        description: What the expense was for
        amount: Amount in ``currency``
        currency: ISO currency code
        category: Expense category
        status: Reimbursement status
        project_id: Optional project the expense belongs to
        phase_id: Optional project phase
        client_id: Optional client the expense is recharged to
        is_billable: Whether the expense is recharged to the client
        receipts: Attached receipt files
        tags: Free-form tags

    Example:
        >>> expense = Expense(
        ...     date=dt.date(2024, 3, 4),
        ...     description="Train to client",
        ...     amount="49.90",
        ...     currency="EUR",
        ...     category=ExpenseCategory.TRAVEL,
        ... )
        >>> expense.status
        <ExpenseStatus.DRAFT: 'Draft'>
    """

    id: str = Field(default_factory=generate_id, description="Expense identifier")
    date: dt.date = Field(..., description="Date incurred")
    description: str = Field("", description="Expense description")
    amount: Decimal = Field(..., ge=0, description="Expense amount")
    currency: str = Field("USD", description="Expense currency")
    category: ExpenseCategory = Field(ExpenseCategory.OTHER, description="Category")
    status: ExpenseStatus = Field(ExpenseStatus.DRAFT, description="Status")
    project_id: Optional[str] = Field(None, description="Project identifier")
    phase_id: Optional[str] = Field(None, description="Project phase identifier")
    client_id: Optional[str] = Field(None, description="Client identifier")
    is_billable: bool = Field(False, description="Recharged to the client")
    receipts: List[Receipt] = Field(default_factory=list, description="Receipts")
    tags: List[str] = Field(default_factory=list, description="Tags")

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return to_decimal(v)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return normalize_currency_code(v)

    @field_validator("project_id", "phase_id", "client_id", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]


class ExpenseReportStatus(str, Enum):
    """Submission status of an expense report."""

    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"


class ExpenseReport(BaseDataModel):
    """A titled bundle of approved expenses for one period.

    ``total_amount`` is a snapshot taken when the report is created, in the
    single currency shared by its expenses.

    Attributes:
        id: Report identifier
        title: Report title
        start_date: First day of the period
        end_date: Last day of the period
        project_id: Project the report was restricted to, if any
        client_id: Client the report was restricted to, if any
        expense_ids: Expenses included in the report
        total_amount: Sum of the included expenses
        currency: Currency of the total
        status: Submission status
        notes: Optional notes
    """

    id: str = Field(default_factory=generate_id, description="Report identifier")
    title: str = Field(..., min_length=1, description="Report title")
    start_date: dt.date = Field(..., description="Period start")
    end_date: dt.date = Field(..., description="Period end")
    project_id: Optional[str] = Field(None, description="Project identifier")
    client_id: Optional[str] = Field(None, description="Client identifier")
    expense_ids: List[str] = Field(..., min_length=1, description="Included expenses")
    total_amount: Decimal = Field(..., ge=0, description="Snapshot total")
    currency: str = Field("USD", description="Currency of the total")
    status: ExpenseReportStatus = Field(
        ExpenseReportStatus.DRAFT, description="Report status"
    )
    notes: Optional[str] = Field(None, description="Notes")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title cannot be empty or whitespace")
        return v.strip()

    @field_validator("total_amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        return to_decimal(v)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return normalize_currency_code(v)

    @field_validator("project_id", "client_id", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_period(self) -> "ExpenseReport":
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date ({self.end_date}) must not be before "
                f"start_date ({self.start_date})"
            )
        return self
