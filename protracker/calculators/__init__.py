"""Calculator modules for ProTracker."""

from protracker.calculators.currency_converter import (
    CurrencyConverter,
    RateTable,
    build_rate_table,
    parse_currency_code,
    convert,
    lookup_rate,
)
from protracker.calculators.expense_report_calculator import (
    create_expense_report,
    eligible_expenses,
)
from protracker.calculators.invoice_calculator import (
    InvoiceTotals,
    calculate_invoice_totals,
    calculate_line_item,
    create_invoice_from_entries,
    create_manual_invoice,
    next_invoice_number,
)
from protracker.calculators.payment_calculator import (
    apply_payment,
    derive_payment_status,
    is_overdue,
    mark_overdue,
    recompute_invoice,
    remove_payment,
)
from protracker.calculators.time_reconciler import (
    ReconciliationResult,
    TimeFieldReconciler,
    TimeFields,
)

__all__ = [
    # currency_converter
    "CurrencyConverter",
    "RateTable",
    "build_rate_table",
    "parse_currency_code",
    "convert",
    "lookup_rate",
    # expense_report_calculator
    "create_expense_report",
    "eligible_expenses",
    # invoice_calculator
    "InvoiceTotals",
    "calculate_invoice_totals",
    "calculate_line_item",
    "create_invoice_from_entries",
    "create_manual_invoice",
    "next_invoice_number",
    # payment_calculator
    "apply_payment",
    "derive_payment_status",
    "is_overdue",
    "mark_overdue",
    "recompute_invoice",
    "remove_payment",
    # time_reconciler
    "ReconciliationResult",
    "TimeFieldReconciler",
    "TimeFields",
]
