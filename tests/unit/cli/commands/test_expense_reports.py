"""Tests for the create-expense-report command."""

from protracker.storage.app_store import AppStore
from protracker.storage.json_storage import JsonFileStorage


class TestCreateExpenseReport:
    """Test bundling approved expenses into a report."""

    def test_all_approved(self, invoke, store, data_dir):
        store.update_expense("e1", status="Approved")

        result = invoke(
            "create-expense-report",
            "--title", "March",
            "--start", "2024-03-01",
            "--end", "2024-03-31",
            "--all-approved",
        )

        assert result.exit_code == 0
        assert "Train" in result.output
        assert "Hosting" not in result.output
        assert "EUR 40.00" in result.output

        reports = AppStore(JsonFileStorage(data_dir)).expense_reports
        assert len(reports) == 1
        assert reports[0].expense_ids == ["e1"]

    def test_nothing_approved(self, invoke, store):
        result = invoke(
            "create-expense-report",
            "--title", "March",
            "--start", "2024-03-01",
            "--end", "2024-03-31",
            "--all-approved",
        )

        assert result.exit_code == 0
        assert "No approved expenses" in result.output

    def test_draft_expense_rejected(self, invoke, store):
        result = invoke(
            "create-expense-report",
            "--title", "March",
            "--start", "2024-03-01",
            "--end", "2024-03-31",
            "--expense", "e2",
        )

        assert result.exit_code == 3
        assert "only approved" in result.output

    def test_mixed_currencies_rejected(self, invoke, store):
        store.update_expense("e1", status="Approved")
        store.update_expense("e2", status="Approved")

        result = invoke(
            "create-expense-report",
            "--title", "March",
            "--start", "2024-03-01",
            "--end", "2024-03-31",
            "--all-approved",
        )

        assert result.exit_code == 3
        assert "several currencies" in result.output

    def test_expense_and_all_approved_conflict(self, invoke, store):
        result = invoke(
            "create-expense-report",
            "--title", "March",
            "--expense", "e1",
            "--all-approved",
        )
        assert result.exit_code == 1
