"""Filtering and grouped summaries over monetary records.

Expenses, invoices and priced time entries are first turned into
``AggregationRecord`` rows, then filtered and summed. Without a target
currency the overall total is a naive sum across currencies; the
per-currency breakdown is always available next to it.
"""

import datetime as dt
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from protracker.calculators.currency_converter import RateTable, convert
from protracker.models.expense import Expense
from protracker.models.invoice import Invoice
from protracker.models.project import Project
from protracker.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

ZERO = Decimal("0.00")


@dataclass
class AggregationRecord:
    """One monetary row fed into the aggregation engine.

    Attributes:
        date: Date the amount belongs to
        amount: Amount in ``currency``
        currency: ISO currency code
        category: Grouping category, if the source has one
        status: Workflow status, if the source has one
        project_id: Related project, if any
        phase_id: Related project phase, if any
        client_id: Related client, if any
        source_id: Identifier of the originating record
    """

    date: dt.date
    amount: Decimal
    currency: str
    category: Optional[str] = None
    status: Optional[str] = None
    project_id: Optional[str] = None
    phase_id: Optional[str] = None
    client_id: Optional[str] = None
    source_id: Optional[str] = None


@dataclass
class AggregationFilters:
    """Optional constraints; a None filter places no constraint.

    Date bounds are inclusive.
    """

    project_id: Optional[str] = None
    phase_id: Optional[str] = None
    client_id: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    status: Optional[str] = None
    category: Optional[str] = None

    def matches(self, record: AggregationRecord) -> bool:
        if self.project_id is not None and record.project_id != self.project_id:
            return False
        if self.phase_id is not None and record.phase_id != self.phase_id:
            return False
        if self.client_id is not None and record.client_id != self.client_id:
            return False
        if self.start_date is not None and record.date < self.start_date:
            return False
        if self.end_date is not None and record.date > self.end_date:
            return False
        if self.status is not None and record.status != _key(self.status):
            return False
        if self.category is not None and record.category != _key(self.category):
            return False
        return True


@dataclass
class AggregationSummary:
    """Totals and grouped sums for a filtered set of records.

    Attributes:
        count: Number of matching records
        total_amount: Sum of all amounts (naive across currencies unless a
            target currency was requested)
        average_amount: total_amount / count, 0 for no records
        by_category: Sum per category
        by_status: Sum per status
        by_project: Sum per project id
        by_phase: Sum per project phase id
        by_client: Sum per client id
        by_currency: Sum per currency, in original amounts
        average_by_currency: Average per currency
        by_category_currency: category -> currency -> sum
        by_status_currency: status -> currency -> sum
        currency: Target currency of the totals, if one was requested
    """

    count: int = 0
    total_amount: Decimal = ZERO
    average_amount: Decimal = ZERO
    by_category: Dict[str, Decimal] = field(default_factory=dict)
    by_status: Dict[str, Decimal] = field(default_factory=dict)
    by_project: Dict[str, Decimal] = field(default_factory=dict)
    by_phase: Dict[str, Decimal] = field(default_factory=dict)
    by_client: Dict[str, Decimal] = field(default_factory=dict)
    by_currency: Dict[str, Decimal] = field(default_factory=dict)
    average_by_currency: Dict[str, Decimal] = field(default_factory=dict)
    by_category_currency: Dict[str, Dict[str, Decimal]] = field(default_factory=dict)
    by_status_currency: Dict[str, Dict[str, Decimal]] = field(default_factory=dict)
    currency: Optional[str] = None

    @property
    def is_mixed_currency(self) -> bool:
        return len(self.by_currency) > 1


def _key(value) -> Optional[str]:
    """Grouping key for enum or plain values."""
    if value is None:
        return None
    return getattr(value, "value", value)


def _average(total: Decimal, count: int) -> Decimal:
    if count == 0:
        return ZERO
    return (total / count).quantize(CENTS, rounding=ROUND_HALF_UP)


# -- adapters -----------------------------------------------------------------


def from_expense(expense: Expense) -> AggregationRecord:
    return AggregationRecord(
        date=expense.date,
        amount=expense.amount,
        currency=expense.currency,
        category=_key(expense.category),
        status=_key(expense.status),
        project_id=expense.project_id,
        phase_id=expense.phase_id,
        client_id=expense.client_id,
        source_id=expense.id,
    )


def from_invoice(invoice: Invoice) -> AggregationRecord:
    """Invoices are dated by issue date and grouped by invoice status."""
    return AggregationRecord(
        date=invoice.issue_date,
        amount=invoice.total_amount,
        currency=invoice.currency,
        status=_key(invoice.status),
        client_id=invoice.client_id,
        source_id=invoice.id,
        category="Manual" if invoice.is_manual else "Time",
    )


def from_time_entry(entry: TimeEntry, project: Project) -> AggregationRecord:
    """Price a time entry at its project's rate.

    Non-billable entries are kept with a zero amount so they still count.
    """
    amount = ZERO
    if entry.is_billable:
        amount = (entry.hours * project.hourly_rate).quantize(CENTS)
    return AggregationRecord(
        date=entry.date,
        amount=amount,
        currency=project.currency,
        category="Billable" if entry.is_billable else "Non-billable",
        status="Invoiced" if entry.is_invoiced else "Uninvoiced",
        project_id=entry.project_id,
        phase_id=entry.phase_id,
        client_id=project.client_id,
        source_id=entry.id,
    )


def records_from_time_entries(
    entries: Iterable[TimeEntry], projects: Iterable[Project]
) -> List[AggregationRecord]:
    """Adapt time entries, skipping those whose project is unknown."""
    project_map = {p.id: p for p in projects}
    records = []
    for entry in entries:
        project = project_map.get(entry.project_id)
        if project is None:
            logger.warning(
                f"Skipping time entry {entry.id}: unknown project {entry.project_id}"
            )
            continue
        records.append(from_time_entry(entry, project))
    return records


# -- engine -------------------------------------------------------------------


class AggregationEngine:
    """Filters records and produces grouped summaries.

    Args:
        rate_table: Exchange rates used when a target currency is requested

    Example:
        >>> engine = AggregationEngine()
        >>> summary = engine.aggregate([from_expense(e) for e in expenses])
        >>> summary.by_category["Travel"]
        Decimal('120.50')
    """

    def __init__(self, rate_table: Optional[RateTable] = None):
        self.rate_table = rate_table or {}

    def filter(
        self,
        records: Iterable[AggregationRecord],
        filters: Optional[AggregationFilters] = None,
    ) -> List[AggregationRecord]:
        if filters is None:
            return list(records)
        return [record for record in records if filters.matches(record)]

    def aggregate(
        self,
        records: Iterable[AggregationRecord],
        filters: Optional[AggregationFilters] = None,
        target_currency: Optional[str] = None,
    ) -> AggregationSummary:
        """Filter records and compute totals and grouped sums.

        Args:
            records: Records to aggregate
            filters: Optional constraints
            target_currency: Convert every amount into this currency before
                summing. ``by_currency`` keeps the original amounts.

        Returns:
            AggregationSummary; all zeros and empty maps for no matches

        Raises:
            MissingRateError: If a target currency is requested and a record's
                currency has no rate to it
        """
        matching = self.filter(records, filters)
        summary = AggregationSummary(currency=target_currency)
        if not matching:
            return summary

        total = ZERO
        by_category: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_status: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_project: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_phase: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_client: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_currency: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        count_by_currency: Dict[str, int] = defaultdict(int)
        by_category_currency: Dict[str, Dict[str, Decimal]] = defaultdict(
            lambda: defaultdict(lambda: ZERO)
        )
        by_status_currency: Dict[str, Dict[str, Decimal]] = defaultdict(
            lambda: defaultdict(lambda: ZERO)
        )

        for record in matching:
            amount = record.amount
            if target_currency is not None:
                amount = convert(
                    record.amount, record.currency, target_currency, self.rate_table
                ).quantize(CENTS, rounding=ROUND_HALF_UP)

            total += amount
            by_currency[record.currency] += record.amount
            count_by_currency[record.currency] += 1

            if record.category is not None:
                by_category[record.category] += amount
                by_category_currency[record.category][record.currency] += record.amount
            if record.status is not None:
                by_status[record.status] += amount
                by_status_currency[record.status][record.currency] += record.amount
            if record.project_id is not None:
                by_project[record.project_id] += amount
            if record.phase_id is not None:
                by_phase[record.phase_id] += amount
            if record.client_id is not None:
                by_client[record.client_id] += amount

        summary.count = len(matching)
        summary.total_amount = total
        summary.average_amount = _average(total, len(matching))
        summary.by_category = dict(by_category)
        summary.by_status = dict(by_status)
        summary.by_project = dict(by_project)
        summary.by_phase = dict(by_phase)
        summary.by_client = dict(by_client)
        summary.by_currency = dict(by_currency)
        summary.average_by_currency = {
            currency: _average(amount, count_by_currency[currency])
            for currency, amount in by_currency.items()
        }
        summary.by_category_currency = {
            k: dict(v) for k, v in by_category_currency.items()
        }
        summary.by_status_currency = {k: dict(v) for k, v in by_status_currency.items()}

        if summary.is_mixed_currency and target_currency is None:
            logger.debug(
                f"Aggregated {summary.count} records across "
                f"{len(summary.by_currency)} currencies without conversion"
            )
        return summary


def aggregate_records(
    records: Iterable[AggregationRecord],
    filters: Optional[AggregationFilters] = None,
    target_currency: Optional[str] = None,
    rate_table: Optional[RateTable] = None,
) -> AggregationSummary:
    """Aggregate records with a one-off engine."""
    return AggregationEngine(rate_table).aggregate(records, filters, target_currency)
