"""Notification outbox producers.

Producers only record the intent to notify; an external worker drains the
``notification_queue`` table and delivers messages.
"""

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import AppError, NotFoundError, ValidationError
from backend.app.models.invoice import Invoice
from backend.app.models.notification_queue import NotificationQueueItem
from backend.app.models.payment import Payment
from backend.app.models.vehicle_inward import VehicleInward

logger = logging.getLogger(__name__)

ZERO_TENANT_ID = "00000000-0000-0000-0000-000000000000"
EVENT_TYPES = (
    "vehicle_inward_created",
    "vehicle_status_updated",
    "installation_complete",
    "invoice_number_added",
    "accountant_completed",
    "vehicle_delivered",
    "invoice_issued",
    "payment_received",
    "invoice_overdue",
)


class NotificationQueueError(ValidationError):
    pass


def is_valid_tenant_id(tenant_id: Any) -> bool:
    if not tenant_id or not isinstance(tenant_id, str):
        return False
    try:
        parsed = uuid.UUID(tenant_id)
    except ValueError:
        return False
    return str(parsed) != ZERO_TENANT_ID


def _json_safe(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def enqueue_notification(db: Session, tenant_id: Optional[str], event_type: str, payload: dict) -> NotificationQueueItem:
    """Append a pending notification; the caller owns the commit."""
    if not is_valid_tenant_id(tenant_id):
        logger.error(
            "notification_enqueue_rejected",
            extra={"extra": {"tenant_id": tenant_id, "event_type": event_type}},
        )
        raise NotificationQueueError("Invalid tenant_id: cannot be null or all zeros")
    if event_type not in EVENT_TYPES:
        raise NotificationQueueError(f"Unknown notification event type: {event_type}")

    item = NotificationQueueItem(
        tenant_id=tenant_id,
        event_type=event_type,
        payload=_json_safe(payload),
        status="pending",
        retry_count=0,
    )
    db.add(item)
    db.flush()
    logger.info(
        "notification_enqueued",
        extra={"extra": {"queue_id": item.id, "tenant_id": tenant_id, "event_type": event_type}},
    )
    return item


def resolve_tenant_id(db: Session, vehicle_inward_id: Optional[str], vehicle_data: Optional[dict]) -> Optional[str]:
    """Tenant for a vehicle-centric event, looked up from the inward record when the payload lacks one."""
    tenant_id = (vehicle_data or {}).get("tenant_id")
    if is_valid_tenant_id(tenant_id):
        return tenant_id
    if vehicle_inward_id:
        logger.warning(
            "notification_tenant_fallback_lookup",
            extra={"extra": {"vehicle_inward_id": vehicle_inward_id}},
        )
        record = db.query(VehicleInward.tenant_id).filter(VehicleInward.id == vehicle_inward_id).first()
        if record and is_valid_tenant_id(record.tenant_id):
            return record.tenant_id
    return None


def describe_vehicle(invoice: Invoice) -> tuple[Optional[dict], Optional[dict]]:
    """Vehicle and customer summaries for an invoice, using inward data as a fallback."""
    inward = invoice.vehicle_inward
    vehicle = invoice.vehicle or (inward.vehicle if inward else None)
    vehicle_summary = None
    customer_summary = None
    if vehicle is not None:
        vehicle_summary = {
            "id": vehicle.id,
            "registration_number": vehicle.registration_number,
            "make": vehicle.make,
            "model": vehicle.model,
        }
        if vehicle.customer is not None:
            customer_summary = {
                "id": vehicle.customer.id,
                "name": vehicle.customer.name,
                "phone": vehicle.customer.phone,
                "email": vehicle.customer.email,
            }
    elif inward is not None:
        vehicle_summary = {"id": None, "registration_number": inward.registration_number, "make": None, "model": None}
    if customer_summary is None and inward is not None and inward.customer_name:
        customer_summary = {
            "id": None,
            "name": inward.customer_name,
            "phone": inward.customer_phone,
            "email": inward.customer_email,
        }
    return vehicle_summary, customer_summary


def _vehicle_payload(invoice: Invoice) -> tuple[Optional[str], dict]:
    vehicle, customer = describe_vehicle(invoice)
    vehicle_data = dict(vehicle or {})
    vehicle_data["tenant_id"] = invoice.tenant_id
    vehicle_data["customer_name"] = (customer or {}).get("name") or invoice.customer_name
    vehicle_data["customers"] = customer
    return vehicle_data.get("id"), vehicle_data


def _enqueue_for_invoice(db: Session, invoice: Invoice, event_type: str, invoice_data: dict) -> NotificationQueueItem:
    vehicle_id, vehicle_data = _vehicle_payload(invoice)
    tenant_id = resolve_tenant_id(db, invoice.vehicle_inward_id, vehicle_data)
    payload = {
        "vehicleId": vehicle_id,
        "vehicleInwardId": invoice.vehicle_inward_id,
        "vehicleData": vehicle_data,
        "invoiceData": invoice_data,
    }
    return enqueue_notification(db, tenant_id, event_type, payload)


def enqueue_invoice_issued(db: Session, invoice: Invoice) -> NotificationQueueItem:
    return _enqueue_for_invoice(
        db,
        invoice,
        "invoice_issued",
        {
            "invoiceId": invoice.id,
            "invoiceNumber": invoice.invoice_number,
            "amount": invoice.total_amount,
            "dueDate": invoice.due_date,
        },
    )


def enqueue_payment_received(db: Session, invoice: Invoice, payment: Payment) -> NotificationQueueItem:
    return _enqueue_for_invoice(
        db,
        invoice,
        "payment_received",
        {
            "invoiceId": invoice.id,
            "invoiceNumber": invoice.invoice_number,
            "amount": payment.amount,
            "paymentMode": payment.payment_mode,
            "balanceAmount": invoice.balance_amount,
        },
    )


def enqueue_invoice_overdue(db: Session, invoice: Invoice) -> NotificationQueueItem:
    return _enqueue_for_invoice(
        db,
        invoice,
        "invoice_overdue",
        {
            "invoiceId": invoice.id,
            "invoiceNumber": invoice.invoice_number,
            "balanceAmount": invoice.balance_amount,
            "dueDate": invoice.due_date,
        },
    )


def notify_safely(db: Session, producer: Callable[..., NotificationQueueItem], *args) -> Optional[NotificationQueueItem]:
    """Run a producer in its own commit; failures are logged and never reach the caller."""
    try:
        item = producer(db, *args)
        db.commit()
        return item
    except (AppError, SQLAlchemyError):
        db.rollback()
        logger.exception("notification_enqueue_failed", extra={"extra": {"producer": producer.__name__}})
        return None


def get_queue_status(db: Session, queue_id: str) -> dict:
    item = db.query(NotificationQueueItem).filter(NotificationQueueItem.id == queue_id).first()
    if item is None:
        raise NotFoundError("Notification not found")
    return {
        "exists": True,
        "queueId": item.id,
        "status": item.status,
        "retryCount": item.retry_count,
        "errorMessage": item.error_message,
        "createdAt": item.created_at,
        "processedAt": item.processed_at,
    }
