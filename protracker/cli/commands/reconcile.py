"""Reconcile time fields command."""

from typing import Optional

import click

from protracker.calculators.time_reconciler import TimeFieldReconciler, TimeFields
from protracker.cli.error_handlers import with_error_handling
from protracker.cli.utils.context import load_settings
from protracker.cli.utils.formatters import format_info, format_success
from protracker.utils.logging_utils import LogContext, generate_run_id


@click.command(name="reconcile-time")
@click.option("--start", "start_time", default=None, help="Start time (HH:MM)")
@click.option("--stop", "stop_time", default=None, help="Stop time (HH:MM)")
@click.option("--hours", default=None, help="Decimal hours, e.g. 2.5")
@click.option(
    "--derive",
    type=click.Choice(["start_time", "stop_time", "hours"]),
    default=None,
    help="Field to recompute from the other two (default: the missing one)",
)
@click.option(
    "--same-day",
    is_flag=True,
    help="Reject a stop time before the start time instead of wrapping overnight",
)
@click.pass_obj
def reconcile_time(
    obj: dict,
    start_time: Optional[str],
    stop_time: Optional[str],
    hours: Optional[str],
    derive: Optional[str],
    same_day: bool,
):
    """Derive or cross-check start time, stop time and hours.

    Give any two fields to derive the third. With all three, they are
    checked for consistency and the command fails on a mismatch.

    Example:
        protracker reconcile-time --start 09:00 --stop 11:20
        protracker reconcile-time --start 22:00 --hours 8
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="reconcile-time", run_id=generate_run_id()
    ):
        reconciler = TimeFieldReconciler.from_config(load_settings(obj["data_dir"]))
        fields = TimeFields.from_input(start_time, stop_time, hours)
        result = reconciler.reconcile(fields, derive=derive, overnight=not same_day)
        result.raise_for_inconsistency()

        rendered = result.fields.as_strings()
        click.echo(f"Start time:  {rendered['start_time'] or '-'}")
        click.echo(f"Stop time:   {rendered['stop_time'] or '-'}")
        click.echo(f"Hours:       {rendered['hours'] or '-'}")
        click.echo()
        if result.derived_field:
            click.echo(format_success(f"Derived {result.derived_field}"))
        elif len(fields.present) == 3:
            click.echo(format_success("Time fields are consistent"))
        else:
            click.echo(format_info("Enter at least two fields to derive the third"))
