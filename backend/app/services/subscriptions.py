"""Tenant deactivation when a subscription or trial has run out."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.time import ensure_aware, utc_now
from backend.app.models.tenant import Tenant

logger = logging.getLogger(__name__)


def _is_expired(tenant: Tenant, now: datetime) -> bool:
    latest = tenant.subscriptions[0] if tenant.subscriptions else None
    if latest is not None and latest.billing_period_end is not None:
        if ensure_aware(latest.billing_period_end) < now:
            return True
    if tenant.subscription_status == "trial" and tenant.trial_ends_at is not None:
        return ensure_aware(tenant.trial_ends_at) < now
    return False


def check_subscription_expiry(db: Session, now: Optional[datetime] = None) -> tuple[int, list[dict]]:
    """Deactivate expired tenants; returns the number deactivated and per-tenant errors."""
    now = ensure_aware(now) if now else utc_now()
    tenant_ids = [row.id for row in db.query(Tenant.id).filter(Tenant.is_active.is_(True)).all()]

    deactivated = 0
    errors = []
    for tenant_id in tenant_ids:
        try:
            tenant = db.get(Tenant, tenant_id)
            if tenant is None or not _is_expired(tenant, now):
                continue
            tenant.is_active = False
            tenant.subscription_status = "inactive"
            db.commit()
            deactivated += 1
            logger.info("tenant_deactivated", extra={"extra": {"tenant_id": tenant_id}})
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("tenant_deactivation_failed", extra={"extra": {"tenant_id": tenant_id}})
            errors.append({"tenant_id": tenant_id, "error": str(exc)})
    return deactivated, errors
