"""Time, revenue and project reports.

This module builds the reports shown on the analytics screens:
- Time report: total/billable hours grouped by project, client or date
- Revenue report: invoiced revenue per currency and client, and outstanding
  balances
- Period metrics with month-over-month change
- Per-project analytics and a top projects ranking
"""

import datetime as dt
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from protracker.models.invoice import Invoice
from protracker.models.project import Project
from protracker.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

GROUP_BY_OPTIONS = ("project", "client", "date")


def _in_range(day: dt.date, start: Optional[dt.date], end: Optional[dt.date]) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def format_period_label(start_date: dt.date, end_date: dt.date) -> str:
    """Human-readable report period.

    Example:
        >>> format_period_label(dt.date(2024, 3, 1), dt.date(2024, 3, 31))
        'Mar 01, 2024 - Mar 31, 2024'
    """
    return f"{start_date:%b %d, %Y} - {end_date:%b %d, %Y}"


def calculate_change(current: Decimal, previous: Decimal) -> Decimal:
    """Percentage change from ``previous`` to ``current``, one decimal place.

    Growth from zero counts as +100%; zero to zero is 0%.

    Example:
        >>> calculate_change(Decimal("120"), Decimal("100"))
        Decimal('20.0')
    """
    if previous == 0:
        return Decimal("100.0") if current > 0 else Decimal("0.0")
    change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return change.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def _billable_rate(billable: Decimal, total: Decimal) -> Decimal:
    if total <= 0:
        return Decimal("0.0")
    return (billable / total * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


@dataclass
class TimeReport:
    """Hours worked within a date range.

    Attributes:
        start_date: First day of the period (inclusive)
        end_date: Last day of the period (inclusive)
        entries: Entries in the period, sorted by date
        total_hours: Sum of all hours
        billable_hours: Sum of billable hours
        billable_rate: Billable share of total hours, in percent
        hours_by_project: Hours per project id
        hours_by_client: Hours per client id
        hours_by_date: Hours per day
    """

    start_date: dt.date
    end_date: dt.date
    entries: List[TimeEntry] = field(default_factory=list)
    total_hours: Decimal = Decimal("0")
    billable_hours: Decimal = Decimal("0")
    billable_rate: Decimal = Decimal("0.0")
    hours_by_project: Dict[str, Decimal] = field(default_factory=dict)
    hours_by_client: Dict[str, Decimal] = field(default_factory=dict)
    hours_by_date: Dict[dt.date, Decimal] = field(default_factory=dict)

    @property
    def period_label(self) -> str:
        return format_period_label(self.start_date, self.end_date)

    def grouped(self, group_by: str = "project") -> Dict:
        """Hours grouped by ``project``, ``client`` or ``date``."""
        if group_by == "project":
            return self.hours_by_project
        if group_by == "client":
            return self.hours_by_client
        if group_by == "date":
            return self.hours_by_date
        raise ValueError(
            f"Unknown grouping '{group_by}', expected one of {GROUP_BY_OPTIONS}"
        )

    def to_dataframe(self) -> pd.DataFrame:
        """One row per entry with date, project, hours and billable flag."""
        if not self.entries:
            return pd.DataFrame(
                columns=["date", "project_id", "description", "hours", "is_billable"]
            )
        return pd.DataFrame(
            [
                {
                    "date": entry.date,
                    "project_id": entry.project_id,
                    "description": entry.description,
                    "hours": entry.hours,
                    "is_billable": entry.is_billable,
                }
                for entry in self.entries
            ]
        )


def generate_time_report(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    start_date: dt.date,
    end_date: dt.date,
) -> TimeReport:
    """Build a time report for entries dated within [start_date, end_date].

    Entries whose project is unknown still count toward the hour totals but
    are left out of the per-client grouping.

    Raises:
        ValueError: If end_date precedes start_date
    """
    if end_date < start_date:
        raise ValueError(f"end_date ({end_date}) is before start_date ({start_date})")

    client_of = {p.id: p.client_id for p in projects}
    selected = sorted(
        (e for e in entries if _in_range(e.date, start_date, end_date)),
        key=lambda e: e.date,
    )

    report = TimeReport(start_date=start_date, end_date=end_date, entries=selected)
    by_project: Dict[str, Decimal] = defaultdict(Decimal)
    by_client: Dict[str, Decimal] = defaultdict(Decimal)
    by_date: Dict[dt.date, Decimal] = defaultdict(Decimal)

    for entry in selected:
        report.total_hours += entry.hours
        if entry.is_billable:
            report.billable_hours += entry.hours
        by_project[entry.project_id] += entry.hours
        by_date[entry.date] += entry.hours
        client_id = client_of.get(entry.project_id)
        if client_id is not None:
            by_client[client_id] += entry.hours

    report.billable_rate = _billable_rate(report.billable_hours, report.total_hours)
    report.hours_by_project = dict(by_project)
    report.hours_by_client = dict(by_client)
    report.hours_by_date = dict(by_date)

    logger.info(
        f"Time report {report.period_label}: {len(selected)} entries, "
        f"{report.total_hours} hours ({report.billable_rate}% billable)"
    )
    return report


@dataclass
class RevenueReport:
    """Invoiced revenue within a date range.

    ``total_revenue`` sums across currencies as-is; use
    ``revenue_by_currency`` when invoices are in several currencies.
    """

    start_date: dt.date
    end_date: dt.date
    invoices: List[Invoice] = field(default_factory=list)
    total_revenue: Decimal = ZERO
    revenue_by_currency: Dict[str, Decimal] = field(default_factory=dict)
    revenue_by_client: Dict[str, Dict[str, Decimal]] = field(default_factory=dict)
    outstanding_by_currency: Dict[str, Decimal] = field(default_factory=dict)
    paid_by_currency: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def period_label(self) -> str:
        return format_period_label(self.start_date, self.end_date)

    @property
    def is_mixed_currency(self) -> bool:
        return len(self.revenue_by_currency) > 1


def generate_revenue_report(
    invoices: Iterable[Invoice], start_date: dt.date, end_date: dt.date
) -> RevenueReport:
    """Build a revenue report for invoices issued within [start_date, end_date].

    Raises:
        ValueError: If end_date precedes start_date
    """
    if end_date < start_date:
        raise ValueError(f"end_date ({end_date}) is before start_date ({start_date})")

    selected = sorted(
        (i for i in invoices if _in_range(i.issue_date, start_date, end_date)),
        key=lambda i: (i.issue_date, i.invoice_number),
    )
    report = RevenueReport(start_date=start_date, end_date=end_date, invoices=selected)

    by_currency: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    by_client: Dict[str, Dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
    outstanding: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    paid: Dict[str, Decimal] = defaultdict(lambda: ZERO)

    for invoice in selected:
        report.total_revenue += invoice.total_amount
        by_currency[invoice.currency] += invoice.total_amount
        by_client[invoice.client_id][invoice.currency] += invoice.total_amount
        paid[invoice.currency] += invoice.paid_amount
        if invoice.balance_due > 0:
            outstanding[invoice.currency] += invoice.balance_due

    report.revenue_by_currency = dict(by_currency)
    report.revenue_by_client = {k: dict(v) for k, v in by_client.items()}
    report.outstanding_by_currency = dict(outstanding)
    report.paid_by_currency = dict(paid)

    logger.info(
        f"Revenue report {report.period_label}: {len(selected)} invoices in "
        f"{len(report.revenue_by_currency)} currencies"
    )
    return report


@dataclass
class PeriodMetrics:
    """Key figures for one period.

    Revenue is billable hours × project rate, grouped per currency;
    ``total_revenue`` is the naive sum across them.
    """

    total_hours: Decimal = Decimal("0")
    billable_hours: Decimal = Decimal("0")
    billable_rate: Decimal = Decimal("0.0")
    total_revenue: Decimal = ZERO
    revenue_by_currency: Dict[str, Decimal] = field(default_factory=dict)


def calculate_period_metrics(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
) -> PeriodMetrics:
    """Hours, billable rate and revenue for entries within the period."""
    project_map = {p.id: p for p in projects}
    metrics = PeriodMetrics()
    revenue: Dict[str, Decimal] = defaultdict(lambda: ZERO)

    for entry in entries:
        if not _in_range(entry.date, start_date, end_date):
            continue
        metrics.total_hours += entry.hours
        if not entry.is_billable:
            continue
        metrics.billable_hours += entry.hours
        project = project_map.get(entry.project_id)
        if project is not None:
            revenue[project.currency] += (entry.hours * project.hourly_rate).quantize(
                Decimal("0.01")
            )

    metrics.billable_rate = _billable_rate(metrics.billable_hours, metrics.total_hours)
    metrics.revenue_by_currency = dict(revenue)
    metrics.total_revenue = sum(revenue.values(), ZERO)
    return metrics


def month_bounds(day: dt.date) -> Tuple[dt.date, dt.date]:
    """First and last day of the month containing ``day``."""
    first = day.replace(day=1)
    next_first = (first + dt.timedelta(days=32)).replace(day=1)
    return first, next_first - dt.timedelta(days=1)


@dataclass
class MonthComparison:
    """This month against the previous one, with percentage changes."""

    current: PeriodMetrics
    previous: PeriodMetrics
    hours_change: Decimal
    billable_rate_change: Decimal
    revenue_change: Decimal


def compare_months(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    today: Optional[dt.date] = None,
) -> MonthComparison:
    """Month-over-month metrics for the month containing ``today``."""
    today = today or dt.date.today()
    entries = list(entries)
    projects = list(projects)

    this_start, this_end = month_bounds(today)
    last_start, last_end = month_bounds(this_start - dt.timedelta(days=1))

    current = calculate_period_metrics(entries, projects, this_start, this_end)
    previous = calculate_period_metrics(entries, projects, last_start, last_end)
    return MonthComparison(
        current=current,
        previous=previous,
        hours_change=calculate_change(current.total_hours, previous.total_hours),
        billable_rate_change=calculate_change(
            current.billable_rate, previous.billable_rate
        ),
        revenue_change=calculate_change(current.total_revenue, previous.total_revenue),
    )


@dataclass
class ProjectAnalytics:
    """Hours and revenue for one project."""

    project_id: str
    project_name: str
    client_id: str
    currency: str
    total_hours: Decimal = Decimal("0")
    billable_hours: Decimal = Decimal("0")
    revenue: Decimal = ZERO
    entry_count: int = 0


def calculate_project_analytics(
    project: Project, entries: Iterable[TimeEntry]
) -> ProjectAnalytics:
    """Summarise a project's entries; revenue counts billable hours only."""
    analytics = ProjectAnalytics(
        project_id=project.id,
        project_name=project.name,
        client_id=project.client_id,
        currency=project.currency,
    )
    for entry in entries:
        if entry.project_id != project.id:
            continue
        analytics.entry_count += 1
        analytics.total_hours += entry.hours
        if entry.is_billable:
            analytics.billable_hours += entry.hours
    analytics.revenue = (analytics.billable_hours * project.hourly_rate).quantize(
        Decimal("0.01")
    )
    return analytics


def top_projects(
    projects: Iterable[Project],
    entries: Iterable[TimeEntry],
    limit: int = 5,
) -> List[ProjectAnalytics]:
    """Projects with logged hours, most hours first."""
    entries = list(entries)
    ranked = [calculate_project_analytics(project, entries) for project in projects]
    ranked = [a for a in ranked if a.total_hours > 0]
    ranked.sort(key=lambda a: a.total_hours, reverse=True)
    return ranked[:limit]
