"""CSV export built on pandas DataFrames.

Each ``*_frame`` function turns records into a DataFrame with display
columns; ``to_csv`` renders it. pandas' minimal quoting wraps any field
containing a comma, quote or newline in double quotes and doubles embedded
quotes.
"""

import csv
import datetime as dt
import io
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from protracker.aggregators.report_aggregator import TimeReport
from protracker.models.expense import Expense, ExpenseReport
from protracker.models.invoice import Invoice
from protracker.models.project import Client, Project
from protracker.models.time_entry import TimeEntry
from protracker.utils.time_utils import format_clock_time

logger = logging.getLogger(__name__)

NO_PROJECT = "No Project"

UNKNOWN = "Unknown"

TIME_ENTRY_COLUMNS = [
    "Date",
    "Project",
    "Client",
    "Description",
    "Start",
    "Stop",
    "Hours",
    "Billable",
    "Invoiced",
]

EXPENSE_COLUMNS = [
    "Date",
    "Description",
    "Amount",
    "Currency",
    "Category",
    "Status",
    "Project",
]

EXPENSE_REPORT_COLUMNS = [
    "Date",
    "Description",
    "Amount",
    "Currency",
    "Category",
    "Project",
    "Receipts",
]

INVOICE_COLUMNS = [
    "Invoice Number",
    "Client",
    "Issue Date",
    "Due Date",
    "Status",
    "Payment Status",
    "Currency",
    "Total",
    "Paid",
    "Balance Due",
]


def _names(records: Iterable) -> Dict[str, str]:
    return {record.id: record.name for record in records}


def _money(amount) -> str:
    return f"{amount:.2f}"


def time_entries_frame(
    entries: Sequence[TimeEntry],
    projects: Iterable[Project] = (),
    clients: Iterable[Client] = (),
) -> pd.DataFrame:
    """One row per time entry, sorted by date."""
    projects = list(projects)
    project_names = _names(projects)
    client_of = {p.id: p.client_id for p in projects}
    client_names = _names(clients)

    rows = []
    for entry in sorted(entries, key=lambda e: (e.date, e.start_time or dt.time.min)):
        client_id = client_of.get(entry.project_id)
        rows.append(
            [
                entry.date.isoformat(),
                project_names.get(entry.project_id, UNKNOWN),
                client_names.get(client_id, UNKNOWN),
                entry.description,
                format_clock_time(entry.start_time) if entry.start_time else "",
                format_clock_time(entry.stop_time) if entry.stop_time else "",
                _money(entry.hours),
                "Yes" if entry.is_billable else "No",
                "Yes" if entry.is_invoiced else "No",
            ]
        )
    return pd.DataFrame(rows, columns=TIME_ENTRY_COLUMNS)


def expenses_frame(
    expenses: Sequence[Expense], projects: Iterable[Project] = ()
) -> pd.DataFrame:
    project_names = _names(projects)
    rows = [
        [
            expense.date.isoformat(),
            expense.description,
            _money(expense.amount),
            expense.currency,
            expense.category.value,
            expense.status.value,
            project_names.get(expense.project_id, NO_PROJECT),
        ]
        for expense in sorted(expenses, key=lambda e: e.date)
    ]
    return pd.DataFrame(rows, columns=EXPENSE_COLUMNS)


def invoices_frame(
    invoices: Sequence[Invoice], clients: Iterable[Client] = ()
) -> pd.DataFrame:
    client_names = _names(clients)
    rows = [
        [
            invoice.invoice_number,
            client_names.get(invoice.client_id, UNKNOWN),
            invoice.issue_date.isoformat(),
            invoice.due_date.isoformat(),
            invoice.status.value,
            invoice.payment_status.value,
            invoice.currency,
            _money(invoice.total_amount),
            _money(invoice.paid_amount),
            _money(invoice.balance_due),
        ]
        for invoice in sorted(invoices, key=lambda i: (i.issue_date, i.invoice_number))
    ]
    return pd.DataFrame(rows, columns=INVOICE_COLUMNS)


def time_report_frame(
    report: TimeReport,
    group_by: str = "project",
    projects: Iterable[Project] = (),
    clients: Iterable[Client] = (),
) -> pd.DataFrame:
    """Grouped hours as ``Type, Name, Hours`` rows."""
    labels = {"project": _names(projects), "client": _names(clients)}
    rows = []
    for key, hours in report.grouped(group_by).items():
        if group_by == "date":
            name = key.isoformat()
        else:
            name = labels[group_by].get(key, UNKNOWN)
        rows.append([group_by.capitalize(), name, _money(hours)])
    return pd.DataFrame(rows, columns=["Type", "Name", "Hours"])


def to_csv(
    frame: pd.DataFrame, path: Optional[Union[str, Path]] = None
) -> str:
    """Render a frame as CSV and optionally write it to ``path``.

    Returns:
        The CSV text
    """
    text = frame.to_csv(index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
        logger.info(f"Wrote {len(frame)} rows to {path}")
    return text


def expense_report_csv(
    report: ExpenseReport,
    expenses: Sequence[Expense],
    projects: Iterable[Project] = (),
) -> str:
    """Expense report: a short header block followed by the expense rows.

    The header shows the report's snapshot total. Only expenses listed on
    the report are written, in report order.
    """
    project_names = _names(projects)
    by_id = {expense.id: expense for expense in expenses}
    rows = [by_id[i] for i in report.expense_ids if i in by_id]

    header: List[List[str]] = [
        ["Expense Report:", report.title],
        [
            "Period:",
            f"{report.start_date.isoformat()} to {report.end_date.isoformat()}",
        ],
        ["Total Amount:", f"{report.currency} {_money(report.total_amount)}"],
        ["Status:", report.status.value],
        [],
    ]
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerows(header)

    detail = pd.DataFrame(
        [
            [
                expense.date.isoformat(),
                expense.description,
                _money(expense.amount),
                expense.currency,
                expense.category.value,
                project_names.get(expense.project_id, NO_PROJECT),
                str(len(expense.receipts)),
            ]
            for expense in rows
        ],
        columns=EXPENSE_REPORT_COLUMNS,
    )
    return buffer.getvalue() + to_csv(detail)
