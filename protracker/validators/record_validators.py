"""Business rule checks for individual records.

These run on records that already passed model validation and flag
values that are allowed but probably wrong.
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Optional

from protracker.models.expense import Expense, ExpenseStatus
from protracker.models.invoice import Invoice, InvoiceStatus
from protracker.models.time_entry import TimeEntry
from protracker.validators.field_validators import FieldValidators
from protracker.validators.validation_report import ValidationReport

# A working day longer than this is flagged
LONG_DAY_HOURS = Decimal("12")

# Expenses above this amount should carry a receipt
RECEIPT_REQUIRED_AMOUNT = Decimal("75.00")


class RecordValidator:
    """Validates time entries, expenses and invoices against business rules.

    Example:
        >>> report = RecordValidator().validate_time_entry(entry)
        >>> report.is_valid()
        True
    """

    def __init__(self, today: Optional[dt.date] = None):
        self.today = today

    def validate_time_entry(self, entry: TimeEntry) -> ValidationReport:
        report = ValidationReport()
        context = {"time_entry": entry.id}

        FieldValidators.validate_date(
            entry.date, "date", report, allow_future=False, today=self.today
        )
        if entry.hours > LONG_DAY_HOURS:
            report.add_warning(
                "hours", f"More than {LONG_DAY_HOURS} hours logged", entry.hours, context
            )
        if not entry.description.strip():
            report.add_warning("description", "Description is empty", "", context)
        if entry.is_invoiced and not entry.is_billable:
            report.add_warning(
                "is_billable",
                "Non-billable entry is linked to an invoice",
                entry.invoice_id,
                context,
            )
        return report

    def validate_expense(self, expense: Expense) -> ValidationReport:
        report = ValidationReport()
        context = {"expense": expense.id}

        FieldValidators.validate_date(
            expense.date, "date", report, allow_future=False, today=self.today
        )
        if expense.amount == 0:
            report.add_warning("amount", "Expense amount is zero", expense.amount, context)
        if expense.amount > RECEIPT_REQUIRED_AMOUNT and not expense.receipts:
            report.add_warning(
                "receipts",
                f"Expenses over {RECEIPT_REQUIRED_AMOUNT} should have a receipt",
                expense.amount,
                context,
            )
        if expense.status == ExpenseStatus.REIMBURSED and not expense.is_billable:
            report.add_info(
                "status", "Reimbursed expense is not marked billable", None, context
            )
        return report

    def validate_invoice(self, invoice: Invoice) -> ValidationReport:
        report = ValidationReport()
        context = {"invoice": invoice.invoice_number}

        if invoice.total_amount == 0:
            report.add_warning(
                "total_amount", "Invoice total is zero", invoice.total_amount, context
            )
        if not invoice.is_manual and not invoice.time_entry_ids:
            report.add_error(
                "time_entry_ids", "Invoice has no time entries", None, context
            )
        if invoice.status == InvoiceStatus.PAID and invoice.balance_due > 0:
            report.add_error(
                "status",
                "Invoice is marked paid but has a balance due",
                invoice.balance_due,
                context,
            )
        return report

    def validate_time_entries(self, entries: Iterable[TimeEntry]) -> ValidationReport:
        combined = ValidationReport()
        for entry in entries:
            combined.merge(self.validate_time_entry(entry))
        return combined

    def validate_expenses(self, expenses: Iterable[Expense]) -> ValidationReport:
        combined = ValidationReport()
        for expense in expenses:
            combined.merge(self.validate_expense(expense))
        return combined
