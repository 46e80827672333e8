"""Payment bookkeeping for invoices.

Paid amounts are always recomputed from the recorded payments, so adding
or removing a payment never lets the invoice drift from its ledger.
"""

import datetime as dt
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from protracker.exceptions import ValidationError
from protracker.models.invoice import Invoice, InvoiceStatus, Payment, PaymentStatus

logger = logging.getLogger(__name__)


def derive_payment_status(total_amount: Decimal, paid_amount: Decimal) -> PaymentStatus:
    """Payment status for a paid amount against a total.

    Example:
        >>> derive_payment_status(Decimal("100.00"), Decimal("40.00"))
        <PaymentStatus.PARTIALLY_PAID: 'Partially Paid'>
    """
    if paid_amount <= 0:
        return PaymentStatus.UNPAID
    if paid_amount >= total_amount:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID


def sum_payments(invoice_id: str, payments: Iterable[Payment]) -> Decimal:
    return sum(
        (p.amount for p in payments if p.invoice_id == invoice_id), Decimal("0.00")
    )


def recompute_invoice(invoice: Invoice, payments: Iterable[Payment]) -> Invoice:
    """Return a copy of the invoice with paid amount and statuses refreshed.

    A fully paid invoice moves to Paid. An invoice that stops being fully
    paid falls back to Sent.
    """
    paid = sum_payments(invoice.id, payments)
    payment_status = derive_payment_status(invoice.total_amount, paid)

    status = invoice.status
    if payment_status == PaymentStatus.PAID:
        status = InvoiceStatus.PAID
    elif status == InvoiceStatus.PAID:
        status = InvoiceStatus.SENT

    return invoice.model_copy(
        update={"paid_amount": paid, "payment_status": payment_status, "status": status}
    )


def apply_payment(
    invoice: Invoice, payments: List[Payment], payment: Payment
) -> Tuple[Invoice, List[Payment]]:
    """Record a payment against an invoice.

    Args:
        invoice: Invoice being paid
        payments: Payments recorded so far (all invoices)
        payment: New payment

    Returns:
        Tuple of (updated invoice, updated payment list)

    Raises:
        ValidationError: If the payment belongs to another invoice or
            exceeds the outstanding balance
    """
    if payment.invoice_id != invoice.id:
        raise ValidationError(
            f"Payment references invoice {payment.invoice_id}, not {invoice.id}",
            field="invoice_id",
            value=payment.invoice_id,
        )

    outstanding = invoice.total_amount - sum_payments(invoice.id, payments)
    if payment.amount > outstanding:
        raise ValidationError(
            f"Payment of {payment.amount} exceeds outstanding balance "
            f"of {outstanding:.2f}",
            field="amount",
            value=payment.amount,
        )

    updated_payments = list(payments) + [payment]
    updated = recompute_invoice(invoice, updated_payments)
    logger.info(
        f"Recorded payment of {payment.amount} on invoice {invoice.invoice_number} "
        f"({updated.payment_status.value})"
    )
    return updated, updated_payments


def remove_payment(
    invoice: Invoice, payments: List[Payment], payment_id: str
) -> Tuple[Invoice, List[Payment]]:
    """Remove a payment and refresh the invoice.

    Raises:
        ValidationError: If no such payment is recorded for the invoice
    """
    remaining = [
        p for p in payments if not (p.id == payment_id and p.invoice_id == invoice.id)
    ]
    if len(remaining) == len(payments):
        raise ValidationError(
            f"Payment {payment_id} not found for invoice {invoice.invoice_number}",
            field="payment_id",
            value=payment_id,
        )
    updated = recompute_invoice(invoice, remaining)
    logger.info(f"Removed payment {payment_id} from invoice {invoice.invoice_number}")
    return updated, remaining


def is_overdue(invoice: Invoice, today: Optional[dt.date] = None) -> bool:
    """An invoice is overdue when unpaid past its due date."""
    today = today or dt.date.today()
    return (
        invoice.payment_status != PaymentStatus.PAID
        and invoice.status != InvoiceStatus.DRAFT
        and invoice.due_date < today
    )


def mark_overdue(
    invoices: Iterable[Invoice], today: Optional[dt.date] = None
) -> List[Invoice]:
    """Return the invoices with overdue ones moved to Overdue status."""
    result = []
    for invoice in invoices:
        if is_overdue(invoice, today) and invoice.status != InvoiceStatus.OVERDUE:
            invoice = invoice.model_copy(update={"status": InvoiceStatus.OVERDUE})
        result.append(invoice)
    return result
