"""Tests for the printable invoice structure."""

import datetime as dt
from decimal import Decimal

from protracker.calculators.invoice_calculator import (
    create_invoice_from_entries,
    create_manual_invoice,
)
from protracker.models.invoice import BillerInfo, Payment
from protracker.models.project import Client, Project
from protracker.models.time_entry import TimeEntry
from protracker.writers.invoice_document import build_invoice_document

CLIENT = Client(
    id="c1",
    name="Acme",
    contact_email="ap@acme.test",
    billing_address="1 Main St",
)
BILLER = BillerInfo(name="Jane Doe", email="jane@example.test")


def entry_invoice():
    project = Project(id="p1", client_id="c1", name="Site", hourly_rate="80")
    entries = [
        TimeEntry(
            id="t1",
            project_id="p1",
            date=dt.date(2024, 3, 1),
            description="Build",
            hours="1.5",
        )
    ]
    return create_invoice_from_entries(
        "c1", entries, [project], "INV-0007", dt.date(2024, 4, 1)
    )


class TestBuildInvoiceDocument:
    """Test invoice document assembly."""

    def test_entry_lines_come_from_snapshot(self):
        invoice = entry_invoice()
        document = build_invoice_document(invoice, CLIENT, BILLER)

        assert document.invoice_number == "INV-0007"
        assert document.biller.name == "Jane Doe"
        assert document.client.address == "1 Main St"
        assert len(document.lines) == 1
        line = document.lines[0]
        assert line.quantity == Decimal("1.5")
        assert line.unit_price == Decimal("80")
        assert line.amount == document.total == Decimal("120.00")
        assert document.balance_due == Decimal("120.00")

    def test_manual_invoice_single_line(self):
        invoice = create_manual_invoice(
            "c1",
            "750",
            "EUR",
            "INV-0002",
            dt.date(2024, 4, 1),
            notes="Workshop",
        )
        document = build_invoice_document(invoice, CLIENT, BILLER)

        assert [line.description for line in document.lines] == ["Workshop"]
        assert document.lines[0].quantity == Decimal("1")
        assert document.currency == "EUR"

    def test_payments_filtered_and_sorted(self):
        invoice = entry_invoice()
        payments = [
            Payment(invoice_id=invoice.id, amount="20", date=dt.date(2024, 4, 20)),
            Payment(invoice_id="other", amount="5", date=dt.date(2024, 4, 1)),
            Payment(
                invoice_id=invoice.id,
                amount="10",
                date=dt.date(2024, 4, 10),
                method="Bank transfer",
            ),
        ]
        document = build_invoice_document(invoice, CLIENT, BILLER, payments)

        amounts = [p["amount"] for p in document.payments]
        assert amounts == [Decimal("10"), Decimal("20")]
        assert document.payments[0]["method"] == "Bank transfer"

    def test_to_dict_is_plain(self):
        data = build_invoice_document(entry_invoice(), CLIENT, BILLER).to_dict()

        assert data["issue_date"] == "2024-04-01"
        assert data["total"] == "120.00"
        assert data["lines"][0]["date"] == "2024-03-01"
        assert data["client"]["email"] == "ap@acme.test"
