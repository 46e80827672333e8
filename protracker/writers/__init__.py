"""Writers for CSV exports and invoice documents."""

from protracker.writers.csv_exporter import (
    expense_report_csv,
    expenses_frame,
    invoices_frame,
    time_entries_frame,
    time_report_frame,
    to_csv,
)
from protracker.writers.invoice_document import (
    DocumentLine,
    DocumentParty,
    InvoiceDocument,
    build_invoice_document,
)

__all__ = [
    "expense_report_csv",
    "expenses_frame",
    "invoices_frame",
    "time_entries_frame",
    "time_report_frame",
    "to_csv",
    "DocumentLine",
    "DocumentParty",
    "InvoiceDocument",
    "build_invoice_document",
]
