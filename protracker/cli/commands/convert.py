"""Convert currency command."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Tuple

import click

from protracker.calculators.currency_converter import CurrencyConverter
from protracker.cli.error_handlers import with_error_handling
from protracker.cli.utils.context import open_store, parse_rate_overrides
from protracker.cli.utils.formatters import format_money
from protracker.models.currency import normalize_currency_code
from protracker.utils.logging_utils import LogContext, generate_run_id

CENTS = Decimal("0.01")


@click.command(name="convert")
@click.argument("amount")
@click.argument("from_currency")
@click.argument("to_currency")
@click.option(
    "--rate",
    "rates",
    multiple=True,
    help="Extra rate as FROM:TO=RATE, overriding stored rates (repeatable)",
)
@click.pass_obj
def convert_amount(
    obj: dict,
    amount: str,
    from_currency: str,
    to_currency: str,
    rates: Tuple[str, ...],
):
    """Convert an amount using the stored exchange rates.

    Example:
        protracker convert 100 EUR USD
        protracker convert 100 EUR USD --rate EUR:USD=1.10
    """
    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise click.BadParameter(f"Invalid amount: {amount}")
    if not value.is_finite():
        raise click.BadParameter(f"Invalid amount: {amount}")
    try:
        source = normalize_currency_code(from_currency)
        target = normalize_currency_code(to_currency)
    except ValueError as e:
        raise click.BadParameter(str(e))
    overrides = parse_rate_overrides(rates)

    with with_error_handling(obj["debug"]), LogContext(
        command="convert", run_id=generate_run_id()
    ):
        store = open_store(obj)
        converter = CurrencyConverter(store.exchange_rates)
        for rate in overrides:
            converter.update_rate(rate)

        converted = converter.convert(value, source, target).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
        click.echo(f"{format_money(value, source)} = {format_money(converted, target)}")
