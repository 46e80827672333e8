"""Project phase commands: add, list and reorder phases."""

from typing import Tuple

import click

from protracker.cli.error_handlers import with_error_handling
from protracker.cli.utils.context import open_store
from protracker.cli.utils.formatters import format_info, format_success, format_table
from protracker.models.project import ProjectPhase
from protracker.utils.logging_utils import LogContext, generate_run_id


@click.command(name="add-phase")
@click.argument("project_id")
@click.argument("name")
@click.option("--description", default="", help="Phase description")
@click.pass_obj
def add_phase(obj: dict, project_id: str, name: str, description: str):
    """Add a phase at the end of a project's phase list.

    Example:
        protracker add-phase p1 "Discovery"
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="add-phase", project_id=project_id, run_id=generate_run_id()
    ):
        store = open_store(obj)
        phase = store.add_project_phase(
            ProjectPhase(project_id=project_id, name=name, description=description)
        )
        click.echo(format_success(f"Added phase {phase.id} '{phase.name}'"))


@click.command(name="list-phases")
@click.argument("project_id")
@click.pass_obj
def list_phases(obj: dict, project_id: str):
    """List a project's phases in order."""
    with with_error_handling(obj["debug"]), LogContext(
        command="list-phases", project_id=project_id, run_id=generate_run_id()
    ):
        store = open_store(obj)
        store.get_project(project_id)
        phases = store.phases_for(project_id)
        if not phases:
            click.echo(format_info("No phases defined"))
            return
        rows = [
            [str(p.order + 1), p.id, p.name, "Archived" if p.is_archived else ""]
            for p in phases
        ]
        click.echo(format_table(["#", "Id", "Name", "Status"], rows))


@click.command(name="reorder-phases")
@click.argument("project_id")
@click.argument("phase_ids", nargs=-1, required=True)
@click.pass_obj
def reorder_phases(obj: dict, project_id: str, phase_ids: Tuple[str, ...]):
    """Set the order of a project's phases.

    Every phase of the project must be listed exactly once.

    Example:
        protracker reorder-phases p1 ph2 ph1 ph3
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="reorder-phases", project_id=project_id, run_id=generate_run_id()
    ):
        store = open_store(obj)
        store.get_project(project_id)
        phases = store.reorder_project_phases(project_id, list(phase_ids))
        click.echo(
            format_success(
                "Phase order: " + ", ".join(phase.name for phase in phases)
            )
        )
