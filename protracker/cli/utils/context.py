"""Shared setup for CLI commands: settings, store and argument parsing."""

import datetime as dt
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click

from protracker.cli.error_handlers import ConfigurationError
from protracker.config.settings import ProTrackerConfig, get_config
from protracker.models.currency import ExchangeRate
from protracker.storage.app_store import AppStore


def load_settings(data_dir: Optional[str] = None) -> ProTrackerConfig:
    """Return the configuration, with ``--data-dir`` taking precedence."""
    settings = get_config()
    if data_dir:
        settings = settings.model_copy(update={"data_dir": Path(data_dir)})
    return settings


def open_store(obj: Dict) -> AppStore:
    """Open the store for the data directory selected on the command group."""
    return AppStore.from_config(load_settings(obj.get("data_dir")))


def parse_date_input(date_str: Optional[str]) -> Optional[dt.date]:
    """Parse a YYYY-MM-DD date.

    Raises:
        click.BadParameter: If the format is invalid
    """
    if date_str is None:
        return None
    try:
        return dt.datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(
            f"Invalid date format: {date_str}. Expected YYYY-MM-DD"
        )


def parse_date_range(
    start: Optional[str], end: Optional[str], today: Optional[dt.date] = None
) -> Tuple[dt.date, dt.date]:
    """Resolve ``--start``/``--end`` with the current month as the default."""
    today = today or dt.date.today()
    start_date = parse_date_input(start) or today.replace(day=1)
    end_date = parse_date_input(end) or today
    if end_date < start_date:
        raise ConfigurationError(
            f"End date {end_date} is before start date {start_date}",
            recovery_hint="Swap --start and --end",
        )
    return start_date, end_date


def parse_rate_overrides(values: Tuple[str, ...]) -> List[ExchangeRate]:
    """Parse ``FROM:TO=RATE`` options into exchange rates.

    Raises:
        click.BadParameter: If a value is not in ``FROM:TO=RATE`` form
    """
    rates = []
    for value in values:
        try:
            pair, rate = value.split("=", 1)
            from_currency, to_currency = pair.split(":", 1)
            rates.append(
                ExchangeRate(
                    from_currency=from_currency,
                    to_currency=to_currency,
                    rate=Decimal(rate),
                )
            )
        except (ValueError, InvalidOperation):
            raise click.BadParameter(
                f"Invalid rate '{value}'. Expected FROM:TO=RATE, e.g. EUR:USD=1.10"
            )
    return rates
