"""Expense report commands."""

from typing import Optional, Tuple

import click

from protracker.calculators.expense_report_calculator import eligible_expenses
from protracker.cli.error_handlers import ConfigurationError, with_error_handling
from protracker.cli.utils.context import open_store, parse_date_range
from protracker.cli.utils.formatters import (
    format_info,
    format_money,
    format_success,
    format_table,
)
from protracker.utils.logging_utils import LogContext, generate_run_id


@click.command(name="create-expense-report")
@click.option("--title", required=True, help="Report title")
@click.option("--start", default=None, help="First day (YYYY-MM-DD), default: month start")
@click.option("--end", default=None, help="Last day (YYYY-MM-DD), default: today")
@click.option("--project", "project_id", default=None, help="Only this project id")
@click.option("--client", "client_id", default=None, help="Only this client id")
@click.option(
    "--expense",
    "expense_ids",
    multiple=True,
    help="Approved expense id to include (repeatable)",
)
@click.option(
    "--all-approved",
    is_flag=True,
    help="Include every approved expense of the period that matches the filters",
)
@click.option("--notes", default=None, help="Notes stored with the report")
@click.pass_obj
def create_expense_report(
    obj: dict,
    title: str,
    start: Optional[str],
    end: Optional[str],
    project_id: Optional[str],
    client_id: Optional[str],
    expense_ids: Tuple[str, ...],
    all_approved: bool,
    notes: Optional[str],
):
    """Bundle approved expenses of a period into a draft report.

    Example:
        protracker create-expense-report --title "March" --all-approved
        protracker create-expense-report --title "Trip" --expense e1 --expense e2
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="create-expense-report", run_id=generate_run_id()
    ):
        start_date, end_date = parse_date_range(start, end)
        if expense_ids and all_approved:
            raise ConfigurationError(
                "--expense cannot be combined with --all-approved",
                recovery_hint="Pick expenses by id or take all approved ones",
            )
        store = open_store(obj)

        selected = list(expense_ids)
        if all_approved:
            selected = [
                e.id
                for e in eligible_expenses(
                    store.expenses,
                    start_date,
                    end_date,
                    store.projects,
                    project_id,
                    client_id,
                )
            ]
        if not selected:
            click.echo(format_info("No approved expenses to report"))
            return

        report = store.create_expense_report(
            title, selected, start_date, end_date, project_id, client_id, notes
        )
        rows = [
            [
                expense.date.isoformat(),
                expense.description,
                format_money(expense.amount, expense.currency),
                expense.category.value,
            ]
            for expense in store.report_expenses(report)
        ]
        click.echo(format_table(["Date", "Description", "Amount", "Category"], rows))
        click.echo()
        click.echo(
            format_success(
                f"Created expense report {report.id} '{report.title}': "
                f"{format_money(report.total_amount, report.currency)}"
            )
        )
