"""Tests for the invoice commands."""

import datetime as dt

from protracker.models.invoice import InvoiceStatus
from protracker.storage.app_store import AppStore
from protracker.storage.json_storage import JsonFileStorage


def reload(data_dir):
    return AppStore(JsonFileStorage(data_dir))


class TestCreateInvoice:
    """Test the create-invoice command."""

    def test_all_unbilled(self, invoke, store, data_dir):
        result = invoke(
            "create-invoice", "--client", "c1", "--all-unbilled",
            "--issue-date", "2024-04-01",
        )

        assert result.exit_code == 0
        assert "Created invoice INV-0001: USD 250.00, due 2024-05-01" in result.output
        assert "Build pages" in result.output
        entry = reload(data_dir).get_time_entry("t1")
        assert entry.invoice_id is not None
        assert reload(data_dir).get_time_entry("t2").invoice_id is None

    def test_nothing_left_to_invoice(self, invoke, store):
        invoke("create-invoice", "--client", "c1", "--all-unbilled")
        result = invoke("create-invoice", "--client", "c1", "--all-unbilled")

        assert result.exit_code == 0
        assert "No time entries to invoice" in result.output

    def test_selected_entries(self, invoke, store):
        result = invoke("create-invoice", "--client", "c1", "--entry", "t1")

        assert result.exit_code == 0
        assert "USD 250.00" in result.output

    def test_non_billable_entry_rejected(self, invoke, store):
        result = invoke("create-invoice", "--client", "c1", "--entry", "t2")

        assert result.exit_code == 3
        assert "not billable" in result.output

    def test_manual_invoice(self, invoke, store, data_dir):
        result = invoke(
            "create-invoice", "--client", "c1", "--amount", "500",
            "--currency", "EUR", "--notes", "Workshop",
        )

        assert result.exit_code == 0
        assert "Created invoice INV-0001: EUR 500.00" in result.output
        invoice = reload(data_dir).invoices[0]
        assert invoice.is_manual
        assert invoice.notes == "Workshop"

    def test_manual_invoice_rejects_entries(self, invoke, store):
        result = invoke(
            "create-invoice", "--client", "c1", "--amount", "500", "--entry", "t1"
        )

        assert result.exit_code == 1
        assert "cannot be combined" in result.output

    def test_manual_invoice_needs_positive_amount(self, invoke, store):
        result = invoke("create-invoice", "--client", "c1", "--amount", "0")

        assert result.exit_code == 3

    def test_unknown_client(self, invoke, store):
        result = invoke("create-invoice", "--client", "nobody", "--amount", "10")

        assert result.exit_code == 3
        assert "No client" in result.output


class TestRecordPayment:
    """Test the record-payment command."""

    def test_partial_then_full(self, invoke, store, data_dir):
        invoke("create-invoice", "--client", "c1", "--entry", "t1")

        partial = invoke("record-payment", "INV-0001", "100", "--date", "2024-04-10")
        assert partial.exit_code == 0
        assert "Partially Paid, balance due USD 150.00" in partial.output

        full = invoke("record-payment", "INV-0001", "150", "--method", "bank transfer")
        assert full.exit_code == 0
        assert "Paid, balance due USD 0.00" in full.output

        invoice = reload(data_dir).invoices[0]
        assert invoice.status == InvoiceStatus.PAID
        assert len(reload(data_dir).payments) == 2

    def test_overpayment(self, invoke, store):
        invoke("create-invoice", "--client", "c1", "--entry", "t1")
        result = invoke("record-payment", "INV-0001", "999")

        assert result.exit_code == 3

    def test_unknown_invoice(self, invoke, store):
        result = invoke("record-payment", "INV-9999", "10")

        assert result.exit_code == 1
        assert "No invoice numbered INV-9999" in result.output


class TestMarkOverdue:
    """Test the mark-overdue command."""

    def test_marks_sent_invoices(self, invoke, store, data_dir):
        invoice = store.create_invoice(
            "c1",
            ["t1"],
            issue_date=dt.date(2024, 3, 1),
            due_date=dt.date(2024, 3, 31),
        )
        store.update_invoice_status(invoice.id, InvoiceStatus.SENT)

        result = invoke("mark-overdue", "--as-of", "2024-04-15")

        assert result.exit_code == 0
        assert "INV-0001 overdue since 2024-03-31: USD 250.00" in result.output
        assert reload(data_dir).invoices[0].status == InvoiceStatus.OVERDUE

    def test_nothing_overdue(self, invoke, store):
        result = invoke("mark-overdue", "--as-of", "2024-04-15")

        assert result.exit_code == 0
        assert "No overdue invoices" in result.output
