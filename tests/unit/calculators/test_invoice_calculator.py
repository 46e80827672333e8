"""Unit tests for invoice totals and invoice creation.

This module tests:
- Line item pricing (hours × project rate)
- Per-currency totals that are never mixed
- Snapshot invoice creation and its validation rules
- Manual invoices and invoice numbering
"""

import datetime as dt
from decimal import Decimal

import pytest

from protracker.calculators.invoice_calculator import (
    InvoiceTotals,
    calculate_invoice_totals,
    calculate_line_item,
    create_invoice_from_entries,
    create_manual_invoice,
    next_invoice_number,
)
from protracker.exceptions import ValidationError
from protracker.models.invoice import Invoice, InvoiceStatus
from protracker.models.project import Project
from protracker.models.time_entry import TimeEntry


@pytest.fixture
def usd_project():
    return Project(id="p1", client_id="c1", name="API", hourly_rate="100", currency="USD")


@pytest.fixture
def eur_project():
    return Project(id="p2", client_id="c1", name="Audit", hourly_rate="80", currency="EUR")


def make_entry(entry_id, project_id="p1", hours="2", **kwargs):
    return TimeEntry(
        id=entry_id,
        project_id=project_id,
        date=dt.date(2024, 3, 4),
        description=f"Work {entry_id}",
        hours=hours,
        **kwargs,
    )


class TestCalculateLineItem:
    """Test pricing of single entries."""

    def test_hours_times_rate(self, usd_project):
        item = calculate_line_item(make_entry("e1", hours="7.5"), usd_project)

        assert item.amount == Decimal("750.00")
        assert item.hourly_rate == Decimal("100")
        assert item.currency == "USD"
        assert item.time_entry_id == "e1"

    def test_amount_rounded_to_cents(self, usd_project):
        project = usd_project.model_copy(update={"hourly_rate": Decimal("85.55")})
        item = calculate_line_item(make_entry("e1", hours="2.34"), project)
        assert item.amount == Decimal("200.19")


class TestCalculateInvoiceTotals:
    """Test totals over a selection of entries."""

    def test_single_currency(self, usd_project):
        entries = [make_entry("e1", hours="2"), make_entry("e2", hours="1.5")]
        totals = calculate_invoice_totals(entries, [usd_project])

        assert totals.by_currency == {"USD": Decimal("350.00")}
        assert totals.total == Decimal("350.00")
        assert totals.total_hours == Decimal("3.5")
        assert totals.currency == "USD"

    def test_multi_currency_not_summed(self, usd_project, eur_project):
        entries = [make_entry("e1", hours="1"), make_entry("e2", "p2", hours="0.25")]
        totals = calculate_invoice_totals(entries, [usd_project, eur_project])

        assert totals.is_multi_currency
        assert totals.by_currency == {"USD": Decimal("100.00"), "EUR": Decimal("20.00")}
        assert totals.format() == "USD 100.00 + EUR 20.00"
        assert totals.currency is None
        with pytest.raises(ValidationError, match="several currencies"):
            totals.total

    def test_accepts_project_mapping(self, usd_project):
        totals = calculate_invoice_totals([make_entry("e1")], {"p1": usd_project})
        assert totals.total == Decimal("200.00")

    def test_unknown_project(self):
        with pytest.raises(ValidationError, match="unknown project"):
            calculate_invoice_totals([make_entry("e1", "missing")], [])

    def test_empty_selection(self):
        totals = calculate_invoice_totals([], [])
        assert totals == InvoiceTotals()
        assert totals.total == Decimal("0.00")


class TestCreateInvoiceFromEntries:
    """Test snapshot invoice creation."""

    def test_creates_draft_snapshot(self, usd_project):
        entries = [make_entry("e1", hours="2"), make_entry("e2", hours="3")]
        invoice = create_invoice_from_entries(
            client_id="c1",
            entries=entries,
            projects=[usd_project],
            invoice_number="INV-0001",
            issue_date=dt.date(2024, 3, 31),
        )

        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.total_amount == Decimal("500.00")
        assert invoice.currency == "USD"
        assert invoice.time_entry_ids == ["e1", "e2"]
        assert [item.amount for item in invoice.line_items] == [
            Decimal("200.00"),
            Decimal("300.00"),
        ]
        assert invoice.due_date == dt.date(2024, 4, 30)

    def test_total_unchanged_by_later_entry_edit(self, usd_project):
        entry = make_entry("e1", hours="2")
        invoice = create_invoice_from_entries(
            "c1", [entry], [usd_project], "INV-0001", dt.date(2024, 3, 31)
        )

        entry.hours = Decimal("5")

        assert invoice.total_amount == Decimal("200.00")
        assert invoice.line_items[0].hours == Decimal("2")

    def test_empty_selection(self, usd_project):
        with pytest.raises(ValidationError, match="at least one time entry"):
            create_invoice_from_entries(
                "c1", [], [usd_project], "INV-0001", dt.date(2024, 3, 31)
            )

    def test_non_billable_entry(self, usd_project):
        with pytest.raises(ValidationError, match="not billable"):
            create_invoice_from_entries(
                "c1",
                [make_entry("e1", is_billable=False)],
                [usd_project],
                "INV-0001",
                dt.date(2024, 3, 31),
            )

    def test_already_invoiced_entry(self, usd_project):
        with pytest.raises(ValidationError, match="already billed"):
            create_invoice_from_entries(
                "c1",
                [make_entry("e1", invoice_id="inv-9")],
                [usd_project],
                "INV-0001",
                dt.date(2024, 3, 31),
            )

    def test_entry_of_another_client(self, usd_project):
        with pytest.raises(ValidationError, match="another client"):
            create_invoice_from_entries(
                "c2", [make_entry("e1")], [usd_project], "INV-0001", dt.date(2024, 3, 31)
            )

    def test_repeated_entry_rejected(self, usd_project):
        entry = make_entry("e1")
        with pytest.raises(ValidationError, match="more than once") as exc_info:
            create_invoice_from_entries(
                "c1",
                [entry, entry],
                [usd_project],
                "INV-0001",
                dt.date(2024, 3, 31),
            )
        assert exc_info.value.field == "time_entry_ids"

    def test_mixed_currencies_rejected(self, usd_project, eur_project):
        with pytest.raises(ValidationError, match="several currencies"):
            create_invoice_from_entries(
                "c1",
                [make_entry("e1"), make_entry("e2", "p2")],
                [usd_project, eur_project],
                "INV-0001",
                dt.date(2024, 3, 31),
            )


class TestManualInvoice:
    """Test fixed-amount invoices."""

    def test_creates_manual_invoice(self):
        invoice = create_manual_invoice(
            "c1", "1200", "eur", "INV-0002", dt.date(2024, 3, 1), dt.date(2024, 3, 15)
        )

        assert invoice.is_manual
        assert invoice.total_amount == Decimal("1200.00")
        assert invoice.currency == "EUR"
        assert invoice.time_entry_ids == []
        assert invoice.due_date == dt.date(2024, 3, 15)

    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    def test_rejects_invalid_amount(self, amount):
        with pytest.raises(ValidationError):
            create_manual_invoice("c1", amount, "USD", "INV-0002", dt.date(2024, 3, 1))

    @pytest.mark.parametrize("currency", ["US", "X1", "dollars"])
    def test_rejects_malformed_currency(self, currency):
        with pytest.raises(ValidationError) as exc_info:
            create_manual_invoice(
                "c1", "100", currency, "INV-0002", dt.date(2024, 3, 1)
            )
        assert exc_info.value.field == "currency"


class TestNextInvoiceNumber:
    """Test sequential numbering."""

    def make_invoice(self, number):
        return Invoice(
            invoice_number=number,
            client_id="c1",
            issue_date=dt.date(2024, 1, 1),
            due_date=dt.date(2024, 1, 31),
            total_amount="10",
            is_manual=True,
        )

    def test_first_number(self):
        assert next_invoice_number([]) == "INV-0001"

    def test_follows_highest(self):
        invoices = [self.make_invoice("INV-0002"), self.make_invoice("INV-0007")]
        assert next_invoice_number(invoices) == "INV-0008"

    def test_ignores_foreign_numbers(self):
        invoices = [self.make_invoice("2024-A"), self.make_invoice("INV-0003")]
        assert next_invoice_number(invoices) == "INV-0004"
