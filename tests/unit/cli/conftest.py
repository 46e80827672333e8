"""Fixtures for CLI tests."""

import datetime as dt

import pytest
from click.testing import CliRunner

from protracker.cli import cli
from protracker.config.logging_config import reset_logging
from protracker.models.currency import ExchangeRate
from protracker.models.expense import Expense, ExpenseCategory
from protracker.models.project import Client, Project
from protracker.models.time_entry import TimeEntry
from protracker.storage.app_store import AppStore
from protracker.storage.json_storage import JsonFileStorage


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path, mock_env):
    """Empty data directory with logging reset after the test."""
    path = tmp_path / "data"
    yield path
    reset_logging()


@pytest.fixture
def invoke(runner, data_dir):
    """Invoke the CLI against the test data directory."""

    def _invoke(*args, **kwargs):
        return runner.invoke(cli, ["--data-dir", str(data_dir), *args], **kwargs)

    return _invoke


@pytest.fixture
def store(data_dir):
    """Store seeded with a client, a project, entries, expenses and a rate."""
    store = AppStore(JsonFileStorage(data_dir))
    store.add_client(Client(id="c1", name="Acme"))
    store.add_project(
        Project(id="p1", client_id="c1", name="Website", hourly_rate="100")
    )
    store.add_time_entry(
        TimeEntry(
            id="t1",
            project_id="p1",
            date=dt.date(2024, 3, 1),
            description="Build pages",
            hours="2.5",
        )
    )
    store.add_time_entry(
        TimeEntry(
            id="t2",
            project_id="p1",
            date=dt.date(2024, 3, 4),
            description="Admin",
            hours="1",
            is_billable=False,
        )
    )
    store.add_expense(
        Expense(
            id="e1",
            date=dt.date(2024, 3, 2),
            description="Train",
            amount="40",
            currency="EUR",
            category=ExpenseCategory.TRAVEL,
            project_id="p1",
        )
    )
    store.add_expense(
        Expense(
            id="e2",
            date=dt.date(2024, 3, 3),
            description="Hosting",
            amount="10",
            category=ExpenseCategory.SOFTWARE,
        )
    )
    store.update_exchange_rate(
        ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.10")
    )
    return store
