"""Tests for the application store."""

import datetime as dt
from decimal import Decimal

import pytest

from protracker.exceptions import ExternalServiceError, StorageError, ValidationError
from protracker.models.currency import ExchangeRate
from protracker.models.expense import Expense, ExpenseReportStatus
from protracker.models.invoice import BillerInfo, InvoiceStatus, PaymentStatus
from protracker.models.project import Client, Project, ProjectPhase
from protracker.models.time_entry import TimeEntry
from protracker.services.receipt_service import ReceiptService
from protracker.storage.app_store import AppStore
from protracker.storage.json_storage import JsonFileStorage


@pytest.fixture
def store(tmp_path):
    return AppStore(JsonFileStorage(tmp_path))


@pytest.fixture
def seeded(store):
    """Store with one client, one project and two billable entries."""
    client = store.add_client(Client(id="c1", name="Acme"))
    store.add_project(
        Project(id="p1", client_id=client.id, name="Website", hourly_rate="100")
    )
    store.add_time_entry(
        TimeEntry(id="t1", project_id="p1", date=dt.date(2024, 3, 1), hours="2.5")
    )
    store.add_time_entry(
        TimeEntry(id="t2", project_id="p1", date=dt.date(2024, 3, 2), hours="1.5")
    )
    return store


def reopen(store):
    return AppStore(JsonFileStorage(store.storage.data_dir))


class TestRecords:
    """Test record CRUD and write-through persistence."""

    def test_empty_store(self, store):
        assert store.clients == []
        assert store.biller_info == BillerInfo()

    def test_changes_persist(self, seeded):
        reopened = reopen(seeded)
        assert [c.name for c in reopened.clients] == ["Acme"]
        assert reopened.get_time_entry("t1").hours == Decimal("2.5")

    def test_duplicate_id_rejected(self, seeded):
        with pytest.raises(ValidationError, match="already exists"):
            seeded.add_client(Client(id="c1", name="Other"))

    def test_project_needs_existing_client(self, store):
        with pytest.raises(ValidationError, match="No client"):
            store.add_project(Project(client_id="nope", name="X", hourly_rate=1))

    def test_entry_needs_existing_project(self, store):
        with pytest.raises(ValidationError, match="No project"):
            store.add_time_entry(
                TimeEntry(project_id="nope", date=dt.date(2024, 1, 1), hours=1)
            )

    def test_update_validates(self, seeded):
        updated = seeded.update_client("c1", name="Acme GmbH")
        assert updated.name == "Acme GmbH"

        with pytest.raises(ValidationError, match="hours"):
            seeded.update_time_entry("t1", hours="30")
        assert seeded.get_time_entry("t1").hours == Decimal("2.5")

    def test_id_cannot_change(self, seeded):
        with pytest.raises(ValidationError, match="cannot be changed"):
            seeded.update_client("c1", id="c2")

    def test_delete_does_not_cascade(self, seeded):
        assert seeded.delete_project("p1") is True
        assert seeded.delete_project("p1") is False
        assert len(seeded.time_entries) == 2

        report = seeded.check_integrity()
        assert report.has_warnings()
        assert not report.has_errors()

    def test_corrupt_record_raises(self, tmp_path):
        JsonFileStorage(tmp_path).save("clients", [{"id": "c1", "name": ""}])
        with pytest.raises(StorageError, match="record #1"):
            AppStore(JsonFileStorage(tmp_path))

    def test_failed_save_is_tracked(self, store, monkeypatch):
        monkeypatch.setattr(store.storage, "save", lambda key, data: False)
        store.add_client(Client(name="Acme"))

        assert "clients" in store.failed_keys
        assert len(store.clients) == 1

    def test_settings(self, store):
        store.update_exchange_rate(
            ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.10")
        )
        store.update_exchange_rate(
            ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.20")
        )
        store.set_biller_info(BillerInfo(name="Jane Doe"))

        reopened = reopen(store)
        assert [r.rate for r in reopened.exchange_rates] == [Decimal("1.20")]
        assert reopened.biller_info.name == "Jane Doe"


class TestInvoices:
    """Test invoice creation, deletion and payments."""

    def test_create_invoice_links_entries(self, seeded):
        invoice = seeded.create_invoice(
            "c1", ["t1", "t2"], issue_date=dt.date(2024, 4, 1)
        )

        assert invoice.invoice_number == "INV-0001"
        assert invoice.total_amount == Decimal("400.00")
        assert invoice.due_date == dt.date(2024, 5, 1)
        assert all(e.invoice_id == invoice.id for e in reopen(seeded).time_entries)

    def test_entries_cannot_be_billed_twice(self, seeded):
        seeded.create_invoice("c1", ["t1"])
        with pytest.raises(ValidationError, match="already billed"):
            seeded.create_invoice("c1", ["t1"])

    def test_repeated_entry_rejected(self, seeded):
        with pytest.raises(ValidationError, match="more than once"):
            seeded.create_invoice("c1", ["t1", "t1"])

        assert seeded.invoices == []
        assert seeded.get_time_entry("t1").invoice_id is None

    def test_manual_invoice_with_malformed_currency(self, seeded):
        with pytest.raises(ValidationError) as exc_info:
            seeded.create_manual_invoice("c1", "500", currency="US")

        assert exc_info.value.field == "currency"
        assert seeded.invoices == []

    def test_snapshot_total_survives_entry_edit(self, seeded):
        invoice = seeded.create_invoice("c1", ["t1"])
        seeded.update_time_entry("t1", hours="5")

        stored = seeded.get_invoice(invoice.id)
        assert stored.total_amount == Decimal("250.00")
        assert stored.line_items[0].hours == Decimal("2.5")

    def test_invoice_numbers_increment(self, seeded):
        seeded.create_invoice("c1", ["t1"])
        manual = seeded.create_manual_invoice("c1", "500")
        assert manual.invoice_number == "INV-0002"
        assert manual.currency == "USD"
        assert manual.is_manual

    def test_delete_invoice_releases_entries(self, seeded):
        invoice = seeded.create_invoice("c1", ["t1", "t2"])
        seeded.update_invoice_status(invoice.id, "Sent")
        payment = seeded.add_payment(invoice.id, "100")

        assert seeded.delete_invoice(invoice.id) is True
        assert all(e.invoice_id is None for e in seeded.time_entries)
        assert seeded.payments == [payment]
        assert seeded.delete_invoice(invoice.id) is False

    def test_payments_update_status(self, seeded):
        invoice = seeded.create_invoice("c1", ["t1"])
        seeded.update_invoice_status(invoice.id, InvoiceStatus.SENT)

        seeded.add_payment(invoice.id, "100", date=dt.date(2024, 4, 2))
        partial = seeded.get_invoice(invoice.id)
        assert partial.payment_status == PaymentStatus.PARTIALLY_PAID
        assert partial.balance_due == Decimal("150.00")

        final = seeded.add_payment(invoice.id, "150")
        paid = seeded.get_invoice(invoice.id)
        assert paid.status == InvoiceStatus.PAID

        reverted = seeded.remove_payment(final.id)
        assert reverted.status == InvoiceStatus.SENT
        assert reverted.paid_amount == Decimal("100")

    def test_overpayment_rejected(self, seeded):
        invoice = seeded.create_invoice("c1", ["t1"])
        with pytest.raises(ValidationError):
            seeded.add_payment(invoice.id, "1000")
        assert seeded.payments == []

    def test_invalid_payment_amount(self, seeded):
        invoice = seeded.create_invoice("c1", ["t1"])
        with pytest.raises(ValidationError, match="Payment"):
            seeded.add_payment(invoice.id, "-5")

    def test_refresh_overdue(self, seeded):
        draft = seeded.create_invoice(
            "c1", ["t1"], issue_date=dt.date(2024, 1, 1), due_date=dt.date(2024, 1, 31)
        )
        sent = seeded.create_invoice(
            "c1", ["t2"], issue_date=dt.date(2024, 1, 1), due_date=dt.date(2024, 1, 31)
        )
        seeded.update_invoice_status(sent.id, "Sent")

        changed = seeded.refresh_overdue(today=dt.date(2024, 2, 15))

        assert [i.id for i in changed] == [sent.id]
        assert seeded.get_invoice(draft.id).status == InvoiceStatus.DRAFT
        assert seeded.refresh_overdue(today=dt.date(2024, 2, 16)) == []


class TestAttachReceipt:
    """Test receipt attachment through the store."""

    def test_attach_receipt(self, store, tmp_path):
        expense = store.add_expense(Expense(date=dt.date(2024, 3, 1), amount="12.50"))
        scan = tmp_path / "scan.pdf"
        scan.write_bytes(b"%PDF-1.4")
        service = ReceiptService(tmp_path / "receipts")

        receipt = store.attach_receipt(expense.id, scan, service)

        stored = reopen(store).get_expense(expense.id)
        assert [r.id for r in stored.receipts] == [receipt.id]

    def test_failed_attach_leaves_expense_unchanged(self, store, tmp_path):
        expense = store.add_expense(Expense(date=dt.date(2024, 3, 1), amount="12.50"))
        service = ReceiptService(tmp_path / "receipts")

        with pytest.raises(ExternalServiceError):
            store.attach_receipt(expense.id, tmp_path / "missing.pdf", service)
        assert store.get_expense(expense.id).receipts == []


class TestProjectPhases:
    """Test phase CRUD, ordering and phase bookings."""

    @pytest.fixture
    def phased(self, seeded):
        seeded.add_project_phase(ProjectPhase(id="ph1", project_id="p1", name="Design"))
        seeded.add_project_phase(ProjectPhase(id="ph2", project_id="p1", name="Build"))
        return seeded

    def test_new_phases_go_last(self, phased):
        assert [p.id for p in phased.phases_for("p1")] == ["ph1", "ph2"]
        assert [p.order for p in reopen(phased).phases_for("p1")] == [0, 1]

    def test_phase_needs_existing_project(self, store):
        with pytest.raises(ValidationError, match="No project"):
            store.add_project_phase(ProjectPhase(project_id="nope", name="Design"))

    def test_reorder(self, phased):
        phases = phased.reorder_project_phases("p1", ["ph2", "ph1"])

        assert [p.id for p in phases] == ["ph2", "ph1"]
        assert [p.id for p in reopen(phased).phases_for("p1")] == ["ph2", "ph1"]

    @pytest.mark.parametrize(
        "phase_ids", [["ph1"], ["ph1", "ph1"], ["ph1", "ph2", "ph3"]]
    )
    def test_reorder_requires_every_phase_once(self, phased, phase_ids):
        with pytest.raises(ValidationError, match="exactly once"):
            phased.reorder_project_phases("p1", phase_ids)
        assert [p.id for p in phased.phases_for("p1")] == ["ph1", "ph2"]

    def test_entry_phase_must_belong_to_project(self, phased):
        phased.add_project(
            Project(id="p2", client_id="c1", name="Other", hourly_rate=1)
        )
        with pytest.raises(ValidationError) as exc_info:
            phased.add_time_entry(
                TimeEntry(
                    project_id="p2",
                    date=dt.date(2024, 3, 3),
                    hours="1",
                    phase_id="ph1",
                )
            )
        assert exc_info.value.field == "phase_id"

        with pytest.raises(ValidationError):
            phased.update_time_entry("t1", phase_id="missing")
        assert phased.update_time_entry("t1", phase_id="ph2").phase_id == "ph2"

    def test_expense_phase_checked(self, phased):
        with pytest.raises(ValidationError):
            phased.add_expense(
                Expense(date=dt.date(2024, 3, 3), amount="5", phase_id="ph1")
            )
        expense = phased.add_expense(
            Expense(
                date=dt.date(2024, 3, 3), amount="5", project_id="p1", phase_id="ph1"
            )
        )
        assert expense.phase_id == "ph1"

    def test_delete_clears_bookings(self, phased):
        phased.update_time_entry("t1", phase_id="ph1")
        phased.add_expense(
            Expense(
                id="x1",
                date=dt.date(2024, 3, 3),
                amount="5",
                project_id="p1",
                phase_id="ph1",
            )
        )

        assert phased.delete_project_phase("ph1") is True

        stored = reopen(phased)
        assert stored.get_time_entry("t1").phase_id is None
        assert stored.get_expense("x1").phase_id is None
        assert [p.id for p in stored.project_phases] == ["ph2"]
        assert phased.delete_project_phase("ph1") is False


class TestExpenseReports:
    """Test expense report creation and lifecycle."""

    @pytest.fixture
    def approved(self, seeded):
        for expense_id, day, amount in (("x1", 5, "30"), ("x2", 6, "12.5")):
            seeded.add_expense(
                Expense(
                    id=expense_id,
                    date=dt.date(2024, 3, day),
                    amount=amount,
                    project_id="p1",
                    status="Approved",
                )
            )
        return seeded

    def test_create_report(self, approved):
        report = approved.create_expense_report(
            "March", ["x1", "x2"], dt.date(2024, 3, 1), dt.date(2024, 3, 31)
        )

        assert report.total_amount == Decimal("42.50")
        assert report.currency == "USD"
        assert report.status == ExpenseReportStatus.DRAFT
        assert reopen(approved).get_expense_report(report.id).expense_ids == [
            "x1",
            "x2",
        ]

    def test_total_is_snapshot(self, approved):
        report = approved.create_expense_report(
            "March", ["x1"], dt.date(2024, 3, 1), dt.date(2024, 3, 31)
        )
        approved.update_expense("x1", amount="99")

        assert approved.get_expense_report(report.id).total_amount == Decimal("30.00")

    def test_unknown_expense(self, approved):
        with pytest.raises(ValidationError, match="No expense"):
            approved.create_expense_report(
                "March", ["nope"], dt.date(2024, 3, 1), dt.date(2024, 3, 31)
            )
        assert approved.expense_reports == []

    def test_unknown_client_filter(self, approved):
        with pytest.raises(ValidationError, match="No client"):
            approved.create_expense_report(
                "March",
                ["x1"],
                dt.date(2024, 3, 1),
                dt.date(2024, 3, 31),
                client_id="c9",
            )

    def test_status_and_delete(self, approved):
        report = approved.create_expense_report(
            "March", ["x1"], dt.date(2024, 3, 1), dt.date(2024, 3, 31)
        )

        updated = approved.update_expense_report_status(report.id, "Submitted")
        assert updated.status == ExpenseReportStatus.SUBMITTED

        assert approved.delete_expense_report(report.id) is True
        assert approved.expense_reports == []
        assert len(approved.expenses) == 2

    def test_report_expenses_skips_deleted(self, approved):
        report = approved.create_expense_report(
            "March", ["x1", "x2"], dt.date(2024, 3, 1), dt.date(2024, 3, 31)
        )
        approved.delete_expense("x1")

        assert [e.id for e in approved.report_expenses(report)] == ["x2"]
        issues = approved.check_integrity().issues
        assert any("Reported expense no longer exists" in str(i) for i in issues)
