"""ProTracker CLI.

This module provides a command-line interface for the ProTracker core.
It includes commands for reconciling time fields, converting currencies,
reports, invoicing, expense reports, project phases and data backup.
"""

from typing import Optional

import click

from protracker import __version__
from protracker.cli.commands.convert import convert_amount
from protracker.cli.commands.data import (
    check_data,
    export_csv,
    export_data_command,
    import_data_command,
)
from protracker.cli.commands.expenses import create_expense_report
from protracker.cli.commands.invoices import create_invoice, mark_overdue, record_payment
from protracker.cli.commands.phases import add_phase, list_phases, reorder_phases
from protracker.cli.commands.reconcile import reconcile_time
from protracker.cli.commands.reports import expense_summary, revenue_report, time_report
from protracker.config.logging_config import LoggingConfig, configure_logging


@click.group(
    help="ProTracker CLI - Track time, expenses and invoices for freelance work"
)
@click.version_option(version=__version__)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Data directory (default: PROTRACKER_DATA_DIR or ./data)",
)
@click.option("--debug", is_flag=True, help="Verbose logging and full stack traces")
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str], debug: bool):
    """ProTracker CLI main entry point."""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["debug"] = debug

    logging_config = LoggingConfig.from_env(
        default_level="DEBUG" if debug else "WARNING"
    )
    if debug:
        logging_config.log_level = "DEBUG"
    configure_logging(logging_config)


# Register commands
cli.add_command(reconcile_time)
cli.add_command(convert_amount)
cli.add_command(expense_summary)
cli.add_command(time_report)
cli.add_command(revenue_report)
cli.add_command(create_invoice)
cli.add_command(record_payment)
cli.add_command(mark_overdue)
cli.add_command(create_expense_report)
cli.add_command(add_phase)
cli.add_command(list_phases)
cli.add_command(reorder_phases)
cli.add_command(export_csv)
cli.add_command(export_data_command)
cli.add_command(import_data_command)
cli.add_command(check_data)


def main():
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
