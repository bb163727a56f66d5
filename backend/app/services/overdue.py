"""Daily sweep that moves past-due invoices to ``overdue``."""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.invoice import Invoice
from backend.app.services.notifications import enqueue_invoice_overdue, notify_safely

logger = logging.getLogger(__name__)

OVERDUE_CANDIDATE_STATUSES = ("issued", "partial")


def mark_overdue_invoices(db: Session, today: Optional[date] = None) -> list[str]:
    """Mark open invoices past their due date and return the ids changed by this run."""
    check_date = today or utc_today()
    invoices = (
        db.query(Invoice)
        .filter(
            Invoice.status.in_(OVERDUE_CANDIDATE_STATUSES),
            Invoice.due_date.isnot(None),
            Invoice.due_date < check_date,
        )
        .with_for_update()
        .all()
    )
    invoice_ids = []
    for invoice in invoices:
        invoice.status = "overdue"
        invoice_ids.append(invoice.id)
    db.commit()
    logger.info("overdue_invoices_marked", extra={"extra": {"count": len(invoice_ids), "as_of": check_date}})
    return invoice_ids


def notify_overdue_invoices(db: Session, invoice_ids: Iterable[str]) -> int:
    queued = 0
    for invoice_id in invoice_ids:
        invoice = db.get(Invoice, invoice_id)
        if invoice is None:
            continue
        if notify_safely(db, enqueue_invoice_overdue, invoice) is not None:
            queued += 1
    return queued
