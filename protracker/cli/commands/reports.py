"""Report commands: expense summary, time report and revenue report."""

from typing import Optional

import click

from protracker.aggregators.record_aggregator import (
    AggregationEngine,
    AggregationFilters,
    from_expense,
)
from protracker.aggregators.report_aggregator import (
    GROUP_BY_OPTIONS,
    generate_revenue_report,
    generate_time_report,
)
from protracker.calculators.currency_converter import parse_currency_code
from protracker.cli.error_handlers import with_error_handling
from protracker.cli.utils.context import open_store, parse_date_range
from protracker.cli.utils.formatters import (
    format_amounts,
    format_info,
    format_money,
    format_success,
    format_table,
    format_warning,
)
from protracker.models.expense import ExpenseCategory, ExpenseStatus
from protracker.utils.logging_utils import LogContext, generate_run_id
from protracker.writers.csv_exporter import time_report_frame, to_csv


def _print_header(title: str, period: str) -> None:
    click.echo()
    click.echo("=" * 60)
    click.echo(title)
    click.echo(period)
    click.echo("=" * 60)


@click.command(name="expense-summary")
@click.option("--start", default=None, help="First day (YYYY-MM-DD), default: month start")
@click.option("--end", default=None, help="Last day (YYYY-MM-DD), default: today")
@click.option("--project", "project_id", default=None, help="Only this project id")
@click.option("--phase", "phase_id", default=None, help="Only this project phase id")
@click.option("--client", "client_id", default=None, help="Only this client id")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ExpenseStatus]),
    default=None,
    help="Only expenses with this status",
)
@click.option(
    "--category",
    type=click.Choice([c.value for c in ExpenseCategory]),
    default=None,
    help="Only expenses in this category",
)
@click.option(
    "--currency",
    "target_currency",
    default=None,
    help="Convert all amounts into this currency before summing",
)
@click.pass_obj
def expense_summary(
    obj: dict,
    start: Optional[str],
    end: Optional[str],
    project_id: Optional[str],
    phase_id: Optional[str],
    client_id: Optional[str],
    status: Optional[str],
    category: Optional[str],
    target_currency: Optional[str],
):
    """Summarize expenses by category and status.

    Without --currency, totals are listed per currency and never mixed.

    Example:
        protracker expense-summary --start 2024-03-01 --end 2024-03-31
        protracker expense-summary --category Travel --currency USD
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="expense-summary", run_id=generate_run_id()
    ):
        start_date, end_date = parse_date_range(start, end)
        store = open_store(obj)
        if target_currency:
            target_currency = parse_currency_code(target_currency)

        filters = AggregationFilters(
            project_id=project_id,
            phase_id=phase_id,
            client_id=client_id,
            start_date=start_date,
            end_date=end_date,
            status=status,
            category=category,
        )
        records = [from_expense(expense) for expense in store.expenses]
        summary = AggregationEngine(store.converter.rate_table).aggregate(
            records, filters, target_currency
        )

        _print_header("Expense Summary", f"{start_date} to {end_date}")
        click.echo(f"Expenses:        {summary.count}")
        if summary.count == 0:
            click.echo()
            click.echo(format_info("No expenses match the filters"))
            return

        if target_currency:
            click.echo(
                f"Total:           {format_money(summary.total_amount, target_currency)}"
            )
            click.echo(
                f"Average:         {format_money(summary.average_amount, target_currency)}"
            )
            rows = [
                [name, format_money(amount, target_currency)]
                for name, amount in sorted(summary.by_category.items())
            ]
        else:
            click.echo(f"Total:           {format_amounts(summary.by_currency)}")
            rows = [
                [name, format_amounts(amounts)]
                for name, amounts in sorted(summary.by_category_currency.items())
            ]

        click.echo()
        click.echo(format_table(["Category", "Amount"], rows))
        status_rows = [
            [name, format_amounts(amounts)]
            for name, amounts in sorted(summary.by_status_currency.items())
        ]
        click.echo()
        click.echo(format_table(["Status", "Amount"], status_rows))

        if summary.is_mixed_currency and not target_currency:
            click.echo()
            click.echo(
                format_warning(
                    "Expenses span several currencies; use --currency to convert"
                )
            )


@click.command(name="time-report")
@click.option("--start", default=None, help="First day (YYYY-MM-DD), default: month start")
@click.option("--end", default=None, help="Last day (YYYY-MM-DD), default: today")
@click.option(
    "--group-by",
    type=click.Choice(list(GROUP_BY_OPTIONS)),
    default="project",
    help="Group hours by project, client or date (default: project)",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Also write the grouped hours to this CSV file",
)
@click.pass_obj
def time_report(
    obj: dict,
    start: Optional[str],
    end: Optional[str],
    group_by: str,
    output: Optional[str],
):
    """Show hours worked in a period.

    Example:
        protracker time-report --start 2024-03-01 --end 2024-03-31 --group-by client
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="time-report", run_id=generate_run_id()
    ):
        start_date, end_date = parse_date_range(start, end)
        store = open_store(obj)
        report = generate_time_report(
            store.time_entries, store.projects, start_date, end_date
        )

        _print_header("Time Report", report.period_label)
        click.echo(f"Entries:         {len(report.entries)}")
        click.echo(f"Total hours:     {report.total_hours:.2f}")
        click.echo(f"Billable hours:  {report.billable_hours:.2f}")
        click.echo(f"Billable rate:   {report.billable_rate}%")

        frame = time_report_frame(report, group_by, store.projects, store.clients)
        if not frame.empty:
            click.echo()
            click.echo(
                format_table(
                    [group_by.capitalize(), "Hours"],
                    frame[["Name", "Hours"]].values.tolist(),
                )
            )

        if output:
            to_csv(frame, output)
            click.echo()
            click.echo(format_success(f"Wrote {len(frame)} rows to {output}"))


@click.command(name="revenue-report")
@click.option("--start", default=None, help="First day (YYYY-MM-DD), default: month start")
@click.option("--end", default=None, help="Last day (YYYY-MM-DD), default: today")
@click.pass_obj
def revenue_report(obj: dict, start: Optional[str], end: Optional[str]):
    """Show invoiced, paid and outstanding amounts per currency.

    Example:
        protracker revenue-report --start 2024-01-01 --end 2024-12-31
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="revenue-report", run_id=generate_run_id()
    ):
        start_date, end_date = parse_date_range(start, end)
        store = open_store(obj)
        report = generate_revenue_report(store.invoices, start_date, end_date)

        _print_header("Revenue Report", report.period_label)
        click.echo(f"Invoices:        {len(report.invoices)}")
        click.echo(f"Invoiced:        {format_amounts(report.revenue_by_currency)}")
        click.echo(f"Paid:            {format_amounts(report.paid_by_currency)}")
        click.echo(f"Outstanding:     {format_amounts(report.outstanding_by_currency)}")

        client_names = {client.id: client.name for client in store.clients}
        rows = [
            [client_names.get(client_id, client_id), format_amounts(amounts)]
            for client_id, amounts in report.revenue_by_client.items()
        ]
        if rows:
            click.echo()
            click.echo(format_table(["Client", "Invoiced"], rows))
