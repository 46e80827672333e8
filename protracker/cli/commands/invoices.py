"""Invoice commands: create invoices, record payments, flag overdue invoices."""

from typing import Optional, Tuple

import click

from protracker.cli.error_handlers import ConfigurationError, with_error_handling
from protracker.cli.utils.context import open_store, parse_date_input
from protracker.cli.utils.formatters import (
    format_info,
    format_money,
    format_success,
    format_table,
    format_warning,
)
from protracker.utils.logging_utils import LogContext, generate_run_id


@click.command(name="create-invoice")
@click.option("--client", "client_id", required=True, help="Client id to bill")
@click.option(
    "--entry",
    "entry_ids",
    multiple=True,
    help="Time entry id to include (repeatable)",
)
@click.option(
    "--all-unbilled",
    is_flag=True,
    help="Include every billable, uninvoiced entry of the client's projects",
)
@click.option(
    "--amount",
    default=None,
    help="Create a manual invoice for this amount instead of time entries",
)
@click.option("--currency", default=None, help="Currency of a manual invoice")
@click.option("--issue-date", default=None, help="Issue date (YYYY-MM-DD), default: today")
@click.option(
    "--due-date",
    default=None,
    help="Due date (YYYY-MM-DD), default: issue date plus the configured terms",
)
@click.option("--notes", default=None, help="Notes printed on the invoice")
@click.pass_obj
def create_invoice(
    obj: dict,
    client_id: str,
    entry_ids: Tuple[str, ...],
    all_unbilled: bool,
    amount: Optional[str],
    currency: Optional[str],
    issue_date: Optional[str],
    due_date: Optional[str],
    notes: Optional[str],
):
    """Create a draft invoice.

    Line amounts are computed once, from each entry's hours and its
    project's hourly rate, and stored with the invoice.

    Example:
        protracker create-invoice --client c1 --all-unbilled
        protracker create-invoice --client c1 --entry e1 --entry e2
        protracker create-invoice --client c1 --amount 500 --currency EUR
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="create-invoice", client_id=client_id, run_id=generate_run_id()
    ):
        issued = parse_date_input(issue_date)
        due = parse_date_input(due_date)
        store = open_store(obj)

        if amount is not None:
            if entry_ids or all_unbilled:
                raise ConfigurationError(
                    "--amount cannot be combined with --entry or --all-unbilled",
                    recovery_hint="Create either a manual or a time-based invoice",
                )
            invoice = store.create_manual_invoice(
                client_id, amount, currency, issued, due, notes
            )
        else:
            selected = list(entry_ids)
            if all_unbilled:
                project_ids = {
                    p.id for p in store.projects if p.client_id == client_id
                }
                selected.extend(
                    e.id
                    for e in store.time_entries
                    if e.project_id in project_ids
                    and e.is_billable
                    and not e.is_invoiced
                    and e.id not in selected
                )
            if not selected:
                click.echo(format_info("No time entries to invoice"))
                return
            invoice = store.create_invoice(client_id, selected, issued, due, notes)

        rows = [
            [
                item.date.isoformat(),
                item.description,
                f"{item.hours:.2f}",
                f"{item.hourly_rate:.2f}",
                f"{item.amount:.2f}",
            ]
            for item in invoice.line_items
        ]
        if rows:
            click.echo(
                format_table(["Date", "Description", "Hours", "Rate", "Amount"], rows)
            )
            click.echo()
        click.echo(
            format_success(
                f"Created invoice {invoice.invoice_number}: "
                f"{format_money(invoice.total_amount, invoice.currency)}, "
                f"due {invoice.due_date}"
            )
        )
        if store.failed_keys:
            click.echo(format_warning("Some changes could not be saved to disk"))


@click.command(name="record-payment")
@click.argument("invoice_number")
@click.argument("amount")
@click.option("--date", "paid_on", default=None, help="Payment date (YYYY-MM-DD)")
@click.option("--method", default=None, help="Payment method, e.g. bank transfer")
@click.option("--note", default=None, help="Free-text note")
@click.pass_obj
def record_payment(
    obj: dict,
    invoice_number: str,
    amount: str,
    paid_on: Optional[str],
    method: Optional[str],
    note: Optional[str],
):
    """Record a payment against an invoice.

    Example:
        protracker record-payment INV-0001 250.00 --method "bank transfer"
    """
    with with_error_handling(obj["debug"]), LogContext(
        command="record-payment", run_id=generate_run_id()
    ):
        paid_date = parse_date_input(paid_on)
        store = open_store(obj)
        invoice = store.find_invoice_by_number(invoice_number)
        if invoice is None:
            raise ConfigurationError(
                f"No invoice numbered {invoice_number}",
                recovery_hint="Check the invoice number",
            )

        store.add_payment(invoice.id, amount, paid_date, method, note)
        invoice = store.get_invoice(invoice.id)
        click.echo(
            format_success(
                f"Recorded payment on {invoice.invoice_number}: "
                f"{invoice.payment_status.value}, balance due "
                f"{format_money(invoice.balance_due, invoice.currency)}"
            )
        )


@click.command(name="mark-overdue")
@click.option("--as-of", default=None, help="Reference date (YYYY-MM-DD), default: today")
@click.pass_obj
def mark_overdue(obj: dict, as_of: Optional[str]):
    """Flag sent, unpaid invoices past their due date as Overdue."""
    with with_error_handling(obj["debug"]), LogContext(
        command="mark-overdue", run_id=generate_run_id()
    ):
        today = parse_date_input(as_of)
        store = open_store(obj)
        changed = store.refresh_overdue(today)
        if not changed:
            click.echo(format_info("No overdue invoices"))
            return
        for invoice in changed:
            click.echo(
                format_warning(
                    f"{invoice.invoice_number} overdue since {invoice.due_date}: "
                    f"{format_money(invoice.balance_due, invoice.currency)}"
                )
            )
        click.echo(format_success(f"Marked {len(changed)} invoice(s) overdue"))
