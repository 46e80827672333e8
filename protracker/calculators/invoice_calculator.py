"""Invoice total calculation and snapshot invoice creation.

This module implements:
- Line items and per-currency totals for a selection of time entries
  (hours × project hourly rate)
- Invoice creation from time entries, freezing the total and line items
- Manual invoices with a fixed amount and no entries
- Sequential invoice numbering

Totals are never summed across currencies. An invoice's total is a
snapshot: editing or deleting its time entries later does not change it.
"""

import datetime as dt
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from protracker.calculators.currency_converter import parse_currency_code
from protracker.exceptions import ValidationError
from protracker.models.base import to_decimal
from protracker.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from protracker.models.project import Project
from protracker.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

DEFAULT_DUE_DAYS = 30


@dataclass
class InvoiceTotals:
    """Priced selection of time entries.

    Attributes:
        line_items: One priced line per entry, in selection order
        by_currency: Sum of line amounts per currency
        total_hours: Sum of hours across all lines
    """

    line_items: List[InvoiceLineItem] = field(default_factory=list)
    by_currency: Dict[str, Decimal] = field(default_factory=dict)
    total_hours: Decimal = Decimal("0")

    @property
    def is_multi_currency(self) -> bool:
        return len(self.by_currency) > 1

    @property
    def currency(self) -> Optional[str]:
        """The single currency of the selection, or None if mixed or empty."""
        if len(self.by_currency) == 1:
            return next(iter(self.by_currency))
        return None

    @property
    def total(self) -> Decimal:
        """Single-currency total.

        Raises:
            ValidationError: If the selection spans several currencies
        """
        if self.is_multi_currency:
            raise ValidationError(
                "Selected time entries are billed in several currencies: "
                + ", ".join(sorted(self.by_currency)),
                field="time_entry_ids",
                recovery_hint="Create one invoice per currency",
            )
        return sum(self.by_currency.values(), Decimal("0.00"))

    def format(self) -> str:
        """Render totals the way the invoice form shows them.

        Example:
            >>> InvoiceTotals(by_currency={"USD": Decimal("100.00"), "EUR": Decimal("20.00")}).format()
            'USD 100.00 + EUR 20.00'
        """
        return " + ".join(
            f"{currency} {amount:.2f}" for currency, amount in self.by_currency.items()
        )


def _index_projects(
    projects: Union[Mapping[str, Project], Iterable[Project]],
) -> Dict[str, Project]:
    if isinstance(projects, Mapping):
        return dict(projects)
    return {project.id: project for project in projects}


def calculate_line_item(entry: TimeEntry, project: Project) -> InvoiceLineItem:
    """Price a single time entry at its project's hourly rate.

    Args:
        entry: Time entry to bill
        project: Project supplying the rate and currency

    Returns:
        InvoiceLineItem with amount = hours × rate (2 decimal precision)

    Example:
        >>> item = calculate_line_item(entry, project)  # 7.5h at 80.00
        >>> item.amount
        Decimal('600.00')
    """
    amount = (entry.hours * project.hourly_rate).quantize(CENTS)
    return InvoiceLineItem(
        time_entry_id=entry.id,
        project_id=project.id,
        date=entry.date,
        description=entry.description,
        hours=entry.hours,
        hourly_rate=project.hourly_rate,
        currency=project.currency,
        amount=amount,
    )


def calculate_invoice_totals(
    entries: Sequence[TimeEntry],
    projects: Union[Mapping[str, Project], Iterable[Project]],
) -> InvoiceTotals:
    """Price a selection of time entries, grouped by project currency.

    Args:
        entries: Selected time entries
        projects: Projects by id, or an iterable of projects

    Returns:
        InvoiceTotals with line items and per-currency totals

    Raises:
        ValidationError: If an entry references an unknown project
    """
    project_map = _index_projects(projects)
    totals = InvoiceTotals()
    by_currency: Dict[str, Decimal] = OrderedDict()

    for entry in entries:
        project = project_map.get(entry.project_id)
        if project is None:
            raise ValidationError(
                f"Time entry {entry.id} references unknown project "
                f"'{entry.project_id}'",
                field="project_id",
                value=entry.project_id,
            )

        item = calculate_line_item(entry, project)
        totals.line_items.append(item)
        current = by_currency.get(item.currency, Decimal("0.00"))
        by_currency[item.currency] = current + item.amount
        totals.total_hours += entry.hours

    totals.by_currency = dict(by_currency)
    return totals


def next_invoice_number(existing: Iterable[Invoice], prefix: str = "INV-") -> str:
    """Next sequential invoice number, e.g. ``INV-0004``.

    Numbers follow the highest existing numeric suffix, so deleting an
    invoice never causes a number to be reused.

    Example:
        >>> next_invoice_number([])
        'INV-0001'
    """
    highest = 0
    for invoice in existing:
        number = invoice.invoice_number
        if number.startswith(prefix) and number[len(prefix):].isdigit():
            highest = max(highest, int(number[len(prefix):]))
    return f"{prefix}{highest + 1:04d}"


def create_invoice_from_entries(
    client_id: str,
    entries: Sequence[TimeEntry],
    projects: Union[Mapping[str, Project], Iterable[Project]],
    invoice_number: str,
    issue_date: dt.date,
    due_date: Optional[dt.date] = None,
    notes: Optional[str] = None,
) -> Invoice:
    """Create an invoice whose total is a snapshot of the selected entries.

    The entries themselves are not modified; linking them to the invoice
    (setting ``invoice_id``) is the store's job.

    Args:
        client_id: Client being invoiced
        entries: Billable, not yet invoiced time entries
        projects: Projects by id, or an iterable of projects
        invoice_number: Number to print on the invoice
        issue_date: Issue date
        due_date: Due date (default: issue date + 30 days)
        notes: Optional notes

    Returns:
        New Invoice in Draft status

    Raises:
        ValidationError: If no entries are selected, an entry is not
            billable or already invoiced, a project is unknown or belongs to
            another client, or the entries span several currencies
    """
    if not entries:
        raise ValidationError(
            "Please select at least one time entry to include in the invoice",
            field="time_entry_ids",
        )

    project_map = _index_projects(projects)
    seen = set()
    for entry in entries:
        if entry.id in seen:
            raise ValidationError(
                f"Time entry {entry.id} is selected more than once",
                field="time_entry_ids",
                value=entry.id,
            )
        seen.add(entry.id)
        if not entry.is_billable:
            raise ValidationError(
                f"Time entry {entry.id} is not billable",
                field="time_entry_ids",
                value=entry.id,
            )
        if entry.invoice_id is not None:
            raise ValidationError(
                f"Time entry {entry.id} is already billed on invoice "
                f"{entry.invoice_id}",
                field="time_entry_ids",
                value=entry.id,
            )
        project = project_map.get(entry.project_id)
        if project is not None and project.client_id != client_id:
            raise ValidationError(
                f"Time entry {entry.id} belongs to a project of another client",
                field="time_entry_ids",
                value=entry.id,
            )

    totals = calculate_invoice_totals(entries, project_map)
    total_amount = totals.total

    invoice = Invoice(
        invoice_number=invoice_number,
        client_id=client_id,
        issue_date=issue_date,
        due_date=due_date or issue_date + dt.timedelta(days=DEFAULT_DUE_DAYS),
        status=InvoiceStatus.DRAFT,
        time_entry_ids=[entry.id for entry in entries],
        line_items=totals.line_items,
        currency=totals.currency,
        total_amount=total_amount,
        notes=notes,
    )
    logger.info(
        f"Created invoice {invoice.invoice_number} for client {client_id}: "
        f"{len(entries)} entries, {invoice.currency} {invoice.total_amount}"
    )
    return invoice


def create_manual_invoice(
    client_id: str,
    amount: Union[Decimal, int, str],
    currency: str,
    invoice_number: str,
    issue_date: dt.date,
    due_date: Optional[dt.date] = None,
    notes: Optional[str] = None,
) -> Invoice:
    """Create an invoice for a fixed, user-entered amount.

    Raises:
        ValidationError: If the amount is not a positive number or the
            currency code is malformed
    """
    try:
        total = to_decimal(amount)
    except ValueError as e:
        raise ValidationError(str(e), field="total_amount", value=amount)
    if not total.is_finite() or total <= 0:
        raise ValidationError(
            f"Invoice amount must be greater than 0, got {total}",
            field="total_amount",
            value=amount,
        )
    total = total.quantize(CENTS)

    invoice = Invoice(
        invoice_number=invoice_number,
        client_id=client_id,
        issue_date=issue_date,
        due_date=due_date or issue_date + dt.timedelta(days=DEFAULT_DUE_DAYS),
        status=InvoiceStatus.DRAFT,
        is_manual=True,
        currency=parse_currency_code(currency),
        total_amount=total,
        notes=notes,
    )
    logger.info(
        f"Created manual invoice {invoice.invoice_number} for client {client_id}: "
        f"{invoice.currency} {invoice.total_amount}"
    )
    return invoice
