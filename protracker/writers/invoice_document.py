"""Invoice document structure handed to a PDF renderer.

Rendering is out of scope here; this module assembles everything a
renderer needs from an invoice snapshot, without re-pricing any entry.
"""

import datetime as dt
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from protracker.models.invoice import BillerInfo, Invoice, Payment
from protracker.models.project import Client


@dataclass
class DocumentParty:
    name: str
    address: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""


@dataclass
class DocumentLine:
    date: Optional[dt.date]
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


@dataclass
class InvoiceDocument:
    """Everything printed on an invoice.

    Attributes:
        invoice_number: Printed invoice number
        issue_date: Issue date
        due_date: Due date
        biller: Who issues the invoice
        client: Who is billed
        currency: Invoice currency
        lines: Printed lines (one per billed entry, or a single manual line)
        total: Snapshot total
        paid: Amount paid so far
        balance_due: Outstanding amount
        notes: Optional notes
        payments: Payments received, for a statement section
    """

    invoice_number: str
    issue_date: dt.date
    due_date: dt.date
    biller: DocumentParty
    client: DocumentParty
    currency: str
    lines: List[DocumentLine] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    paid: Decimal = Decimal("0.00")
    balance_due: Decimal = Decimal("0.00")
    notes: Optional[str] = None
    payments: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary with dates as ISO strings and amounts as text."""

        def plain(value):
            if isinstance(value, (dt.date, Decimal)):
                return str(value)
            if isinstance(value, list):
                return [plain(v) for v in value]
            if isinstance(value, dict):
                return {k: plain(v) for k, v in value.items()}
            return value

        return plain(asdict(self))


def build_invoice_document(
    invoice: Invoice,
    client: Client,
    biller: BillerInfo,
    payments: Optional[List[Payment]] = None,
) -> InvoiceDocument:
    """Assemble the printable structure for an invoice.

    Line amounts come from the invoice's line item snapshot, so later edits
    to time entries never change a reprinted invoice.
    """
    if invoice.is_manual:
        lines = [
            DocumentLine(
                date=invoice.issue_date,
                description=invoice.notes or "Professional services",
                quantity=Decimal("1"),
                unit_price=invoice.total_amount,
                amount=invoice.total_amount,
            )
        ]
    else:
        lines = [
            DocumentLine(
                date=item.date,
                description=item.description,
                quantity=item.hours,
                unit_price=item.hourly_rate,
                amount=item.amount,
            )
            for item in invoice.line_items
        ]

    return InvoiceDocument(
        invoice_number=invoice.invoice_number,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        biller=DocumentParty(
            name=biller.name,
            address=biller.address,
            email=biller.email,
            phone=biller.phone,
            website=biller.website,
        ),
        client=DocumentParty(
            name=client.name,
            address=client.billing_address,
            email=client.contact_email,
        ),
        currency=invoice.currency,
        lines=lines,
        total=invoice.total_amount,
        paid=invoice.paid_amount,
        balance_due=invoice.balance_due,
        notes=invoice.notes,
        payments=[
            {"date": p.date, "amount": p.amount, "method": p.method or ""}
            for p in sorted(payments or [], key=lambda p: p.date)
            if p.invoice_id == invoice.id
        ],
    )
