"""Endpoints invoked by the external scheduler."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.core.time import utc_now
from backend.app.db.session import get_db
from backend.app.dependencies.auth import verify_cron_secret
from backend.app.services.overdue import mark_overdue_invoices, notify_overdue_invoices
from backend.app.services.subscriptions import check_subscription_expiry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/mark-overdue-invoices")
async def mark_overdue(db: Session = Depends(get_db)):
    invoice_ids = mark_overdue_invoices(db)
    queued = notify_overdue_invoices(db, invoice_ids)
    logger.info("overdue_sweep_completed", extra={"extra": {"updated": len(invoice_ids), "notified": queued}})
    return {"success": True, "updated": len(invoice_ids), "timestamp": utc_now().isoformat()}


@router.api_route("/check-subscription-expiry", methods=["GET", "POST"])
async def subscription_expiry(db: Session = Depends(get_db)):
    deactivated, errors = check_subscription_expiry(db)
    body = {
        "success": True,
        "message": f"Checked subscriptions, deactivated {deactivated} tenant(s)",
        "deactivated": deactivated,
    }
    if errors:
        body["errors"] = errors
    return body
