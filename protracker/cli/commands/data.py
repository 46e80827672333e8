"""Data commands: CSV export, JSON backup and restore, integrity check."""

import datetime as dt
from pathlib import Path
from typing import Optional

import click

from protracker.cli.error_handlers import ConfigurationError, with_error_handling
from protracker.cli.utils.context import open_store
from protracker.cli.utils.formatters import (
    format_error,
    format_info,
    format_success,
    format_warning,
)
from protracker.storage.data_transfer import IMPORT_MODES, export_json, import_data
from protracker.utils.logging_utils import LogContext, generate_run_id
from protracker.validators.record_validators import RecordValidator
from protracker.validators.validation_report import ValidationSeverity
from protracker.writers.csv_exporter import (
    expense_report_csv,
    expenses_frame,
    invoices_frame,
    time_entries_frame,
    to_csv,
)

CSV_KINDS = ("time-entries", "expenses", "invoices", "expense-report")


@click.command(name="export-csv")
@click.argument("kind", type=click.Choice(CSV_KINDS))
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="File to write (default: print to stdout)",
)
@click.option(
    "--report",
    "report_id",
    default=None,
    help="Expense report id (required for expense-report)",
)
@click.pass_obj
def export_csv(
    obj: dict,
    kind: str,
    output: Optional[str],
    report_id: Optional[str],
):
    """Export records as CSV.

    Example:
        protracker export-csv time-entries --output time.csv
        protracker export-csv expense-report --report r1
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="export-csv", kind=kind, run_id=generate_run_id()
    ):
        store = open_store(obj)

        if kind == "expense-report":
            if not report_id:
                raise ConfigurationError(
                    "expense-report needs --report",
                    recovery_hint="Create one with 'protracker create-expense-report'",
                )
            report = store.get_expense_report(report_id)
            text = expense_report_csv(report, store.expenses, store.projects)
            if output:
                Path(output).write_text(text, encoding="utf-8")
        else:
            if kind == "time-entries":
                frame = time_entries_frame(
                    store.time_entries, store.projects, store.clients
                )
            elif kind == "expenses":
                frame = expenses_frame(store.expenses, store.projects)
            else:
                frame = invoices_frame(store.invoices, store.clients)
            text = to_csv(frame, output)

        if output:
            click.echo(format_success(f"Exported {kind} to {output}"))
        else:
            click.echo(text, nl=False)


@click.command(name="export-data")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Backup file (default: protracker-backup-<date>.json)",
)
@click.pass_obj
def export_data_command(obj: dict, output: Optional[str]):
    """Write every collection to a checksummed JSON backup.

    Example:
        protracker export-data --output backup.json
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="export-data", run_id=generate_run_id()
    ):
        store = open_store(obj)
        target = Path(output or f"protracker-backup-{dt.date.today().isoformat()}.json")
        target.write_text(export_json(store), encoding="utf-8")
        click.echo(format_success(f"Exported data to {target}"))


@click.command(name="import-data")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--mode",
    type=click.Choice(list(IMPORT_MODES)),
    default="merge",
    help="merge adds and updates records; replace overwrites everything",
)
@click.option("--yes", is_flag=True, help="Do not ask before replacing data")
@click.pass_obj
def import_data_command(obj: dict, path: str, mode: str, yes: bool):
    """Restore a JSON backup.

    Example:
        protracker import-data backup.json
        protracker import-data backup.json --mode replace --yes
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="import-data", mode=mode, run_id=generate_run_id()
    ):
        if mode == "replace" and not yes:
            click.confirm("Replace all existing data?", abort=True)

        store = open_store(obj)
        document = Path(path).read_text(encoding="utf-8")
        result = import_data(store, document, mode=mode)

        for warning in result.warnings:
            click.echo(format_warning(warning))
        total = sum(result.counts.values())
        if result.saved:
            click.echo(format_success(f"Imported {total} records ({mode})"))
        else:
            click.echo(format_error("Import finished but some data could not be saved"))
            click.get_current_context().exit(1)


@click.command(name="check-data")
@click.option(
    "--severity",
    type=click.Choice(["error", "warning", "info"], case_sensitive=False),
    default="warning",
    help="Minimum severity level to display (default: warning)",
)
@click.pass_obj
def check_data(obj: dict, severity: str):
    """Check stored records and their references.

    Returns non-zero exit code if errors are found.
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="check-data", run_id=generate_run_id()
    ):
        severity_level = ValidationSeverity[severity.upper()]
        store = open_store(obj)

        click.echo(format_info("Checking stored data..."))
        report = store.check_integrity()
        validator = RecordValidator()
        report.merge(validator.validate_time_entries(store.time_entries))
        report.merge(validator.validate_expenses(store.expenses))
        with click.progressbar(store.invoices, label="Checking invoices") as bar:
            for invoice in bar:
                report.merge(validator.validate_invoice(invoice))

        click.echo()
        click.echo("=" * 60)
        click.echo("Data Check Summary")
        click.echo("=" * 60)
        click.echo(f"Errors:           {report.error_count}")
        click.echo(f"Warnings:         {report.warning_count}")
        click.echo(f"Info:             {report.info_count}")

        shown = [i for i in report.issues if i.severity >= severity_level]
        if shown:
            click.echo()
            for issue in shown[:50]:
                if issue.severity == ValidationSeverity.ERROR:
                    click.echo(format_error(f"  {issue}"))
                elif issue.severity == ValidationSeverity.WARNING:
                    click.echo(format_warning(f"  {issue}"))
                else:
                    click.echo(format_info(f"  {issue}"))
            if len(shown) > 50:
                click.echo(f"  ... and {len(shown) - 50} more")

        click.echo()
        if report.has_errors():
            click.echo(format_error(f"Check failed with {report.error_count} error(s)"))
            click.get_current_context().exit(1)
        elif report.has_warnings():
            click.echo(
                format_warning(
                    f"Check completed with {report.warning_count} warning(s)"
                )
            )
        else:
            click.echo(format_success("Check passed! No issues found."))
