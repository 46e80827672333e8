"""Data models for ProTracker.

This package contains Pydantic models for all business entities:
- BaseDataModel: Base class with common configuration
- Client, Project, ProjectPhase: Who work is done for, at what rate and in
  which stage
- TimeEntry: Hours worked on a project
- Expense, Receipt, ExpenseReport: Business expenses, attached receipts and
  reports bundling approved expenses
- Invoice, InvoiceLineItem, Payment, BillerInfo: Billing records
- ExchangeRate, Currency: Externally supplied conversion data
"""

from protracker.models.base import BaseDataModel, generate_id
from protracker.models.currency import Currency, ExchangeRate
from protracker.models.expense import (
    Expense,
    ExpenseCategory,
    ExpenseReport,
    ExpenseReportStatus,
    ExpenseStatus,
    Receipt,
)
from protracker.models.invoice import (
    BillerInfo,
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    Payment,
    PaymentStatus,
)
from protracker.models.project import Client, Project, ProjectPhase, ProjectStatus
from protracker.models.time_entry import TimeEntry

__all__ = [
    "BaseDataModel",
    "generate_id",
    "Currency",
    "ExchangeRate",
    "Expense",
    "ExpenseCategory",
    "ExpenseReport",
    "ExpenseReportStatus",
    "ExpenseStatus",
    "Receipt",
    "BillerInfo",
    "Invoice",
    "InvoiceLineItem",
    "InvoiceStatus",
    "Payment",
    "PaymentStatus",
    "Client",
    "Project",
    "ProjectPhase",
    "ProjectStatus",
    "TimeEntry",
]
