"""Aggregators for summarising expenses, invoices and time.

This module provides the aggregation engine for grouped monetary summaries
and the report builders used by the analytics screens.
"""

from protracker.aggregators.record_aggregator import (
    AggregationEngine,
    AggregationFilters,
    AggregationRecord,
    AggregationSummary,
    aggregate_records,
    from_expense,
    from_invoice,
    from_time_entry,
    records_from_time_entries,
)
from protracker.aggregators.report_aggregator import (
    MonthComparison,
    PeriodMetrics,
    ProjectAnalytics,
    RevenueReport,
    TimeReport,
    calculate_change,
    calculate_period_metrics,
    calculate_project_analytics,
    compare_months,
    generate_revenue_report,
    generate_time_report,
    top_projects,
)

__all__ = [
    "AggregationEngine",
    "AggregationFilters",
    "AggregationRecord",
    "AggregationSummary",
    "aggregate_records",
    "from_expense",
    "from_invoice",
    "from_time_entry",
    "records_from_time_entries",
    "MonthComparison",
    "PeriodMetrics",
    "ProjectAnalytics",
    "RevenueReport",
    "TimeReport",
    "calculate_change",
    "calculate_period_metrics",
    "calculate_project_analytics",
    "compare_months",
    "generate_revenue_report",
    "generate_time_report",
    "top_projects",
]
