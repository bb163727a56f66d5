"""Payment recording against invoices.

Every write locks the owning invoice row and recomputes its aggregates from
the payments table before committing, so paid and balance amounts always
reflect the stored payments.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError, ValidationError
from backend.app.models.invoice import Invoice
from backend.app.models.payment import Payment
from backend.app.schemas.payment import PaymentCreate, PaymentUpdate
from backend.app.services.billing import ZERO, recalculate_invoice_totals, to_money
from backend.app.services.invoices import get_scoped_invoice
from backend.app.services.notifications import enqueue_payment_received, notify_safely
from backend.app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)


def _check_amount(amount) -> None:
    if amount is None or amount <= ZERO:
        raise ValidationError("Payment amount must be greater than 0")


def _get_scoped_payment(db: Session, ctx: TenantContext, payment_id: str) -> Payment:
    payment = ctx.scope(db.query(Payment), Payment).filter(Payment.id == payment_id).first()
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment


def _lock_invoice(db: Session, invoice_id: str) -> Invoice:
    return db.query(Invoice).filter(Invoice.id == invoice_id).with_for_update().one()


def record_payment(
    db: Session,
    ctx: TenantContext,
    data: PaymentCreate,
    created_by: Optional[str] = None,
    today: Optional[date] = None,
) -> tuple[Payment, Invoice]:
    ctx.require_tenant()
    _check_amount(data.amount)
    invoice = get_scoped_invoice(db, ctx, data.invoice_id, lock=True)
    if invoice.status == "cancelled":
        raise ValidationError("Cannot record payment for cancelled invoice")

    payment = Payment(
        invoice_id=invoice.id,
        tenant_id=invoice.tenant_id,
        amount=to_money(data.amount),
        payment_mode=data.payment_mode,
        payment_date=data.payment_date,
        reference_number=data.reference_number,
        paid_by=data.paid_by,
        notes=data.notes,
        created_by=created_by,
    )
    db.add(payment)
    recalculate_invoice_totals(db, invoice, today)
    db.commit()
    db.refresh(payment)
    db.refresh(invoice)

    logger.info(
        "payment_recorded",
        extra={
            "extra": {
                "payment_id": payment.id,
                "invoice_id": invoice.id,
                "invoice_status": invoice.status,
            }
        },
    )
    notify_safely(db, enqueue_payment_received, invoice, payment)
    return payment, invoice


def update_payment(
    db: Session,
    ctx: TenantContext,
    payment_id: str,
    data: PaymentUpdate,
    today: Optional[date] = None,
) -> Payment:
    ctx.require_tenant()
    payment = _get_scoped_payment(db, ctx, payment_id)
    invoice = _lock_invoice(db, payment.invoice_id)
    if invoice.status == "cancelled":
        raise ValidationError("Cannot modify payment for cancelled invoice")

    changes = data.model_dump(exclude_unset=True)
    if "amount" in changes:
        _check_amount(changes["amount"])
        changes["amount"] = to_money(changes["amount"])
    for field in ("payment_mode", "payment_date"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be null")
    for field, value in changes.items():
        setattr(payment, field, value)

    recalculate_invoice_totals(db, invoice, today)
    db.commit()
    db.refresh(payment)
    logger.info(
        "payment_updated",
        extra={"extra": {"payment_id": payment.id, "invoice_id": invoice.id, "fields": sorted(changes)}},
    )
    return payment


def delete_payment(db: Session, ctx: TenantContext, payment_id: str, today: Optional[date] = None) -> None:
    ctx.require_tenant()
    payment = _get_scoped_payment(db, ctx, payment_id)
    invoice = _lock_invoice(db, payment.invoice_id)
    if invoice.status == "cancelled":
        raise ValidationError("Cannot delete payment for cancelled invoice")

    db.delete(payment)
    recalculate_invoice_totals(db, invoice, today)
    db.commit()
    logger.info("payment_deleted", extra={"extra": {"payment_id": payment_id, "invoice_id": invoice.id}})


def list_payments_for_invoice(db: Session, ctx: TenantContext, invoice_id: str) -> list[Payment]:
    invoice = get_scoped_invoice(db, ctx, invoice_id)
    return (
        db.query(Payment)
        .filter(Payment.invoice_id == invoice.id)
        .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
        .all()
    )
