"""Billing arithmetic and invoice balance recomputation."""

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.invoice import Invoice
from backend.app.models.payment import Payment

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def parse_amount(value: Any) -> Decimal | None:
    """Parse a user supplied number; return None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def to_money(value: Any) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_line_total(quantity: Decimal, unit_price: Decimal) -> Decimal:
    return to_money(quantity * unit_price)


def compute_invoice_amounts(subtotal: Decimal, discount: Decimal, tax: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(amount, total_amount)``; neither goes below zero."""
    amount = max(ZERO, to_money(subtotal) - to_money(discount))
    total_amount = max(ZERO, amount + to_money(tax))
    return to_money(amount), to_money(total_amount)


def determine_invoice_status(invoice: Invoice, today: date | None = None) -> str:
    """Status implied by the invoice's paid amount.

    Cancelled invoices never move. Overdue invoices only leave ``overdue`` once
    fully paid. When all payments are removed a partial or paid invoice falls
    back to the state it would have without payments.
    """
    status = invoice.status
    if status == "cancelled":
        return status
    paid = to_money(invoice.paid_amount)
    total = to_money(invoice.total_amount)
    if paid > ZERO and paid >= total:
        return "paid"
    if paid > ZERO:
        return "overdue" if status == "overdue" else "partial"
    if status in ("partial", "paid"):
        if invoice.issued_at is None:
            return "draft"
        check_date = today or utc_today()
        if invoice.due_date and invoice.due_date < check_date:
            return "overdue"
        return "issued"
    return status


def recalculate_invoice_totals(db: Session, invoice: Invoice, today: date | None = None) -> None:
    """Recompute paid/balance/status from the payments table.

    Must run inside the transaction that wrote the payment, with the invoice row
    locked, so concurrent payments cannot lose updates.
    """
    db.flush()
    paid = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.invoice_id == invoice.id)
        .scalar()
    )
    invoice.paid_amount = to_money(paid)
    invoice.balance_amount = to_money(invoice.total_amount) - invoice.paid_amount
    invoice.status = determine_invoice_status(invoice, today)
