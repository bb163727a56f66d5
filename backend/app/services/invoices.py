"""Invoice lifecycle: creation, numbering, issue, cancel, edit and reporting."""

import json
import logging
import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import InternalError, NotFoundError, ValidationError
from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now, utc_today
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_line_item import InvoiceLineItem
from backend.app.models.invoice_number_sequence import InvoiceNumberSequence
from backend.app.models.tenant import Tenant
from backend.app.models.vehicle_inward import VehicleInward
from backend.app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from backend.app.schemas.invoice_line_item import LineItemInput
from backend.app.services.billing import (
    ZERO,
    calculate_line_total,
    compute_invoice_amounts,
    parse_amount,
    recalculate_invoice_totals,
    to_money,
)
from backend.app.services.notifications import enqueue_invoice_issued, notify_safely
from backend.app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "INV-"
NUMBER_SUFFIX_RE = re.compile(r"(\d+)$")
UNKNOWN_CUSTOMER = "Unknown Customer"
INVOICED_STATUSES = ("issued", "partial", "paid")
OUTSTANDING_STATUSES = ("issued", "partial", "overdue")


def invoice_number_prefix(db: Session, tenant_id: str) -> str:
    tenant_code = db.query(Tenant.tenant_code).filter(Tenant.id == tenant_id).scalar()
    return f"{tenant_code}-" if tenant_code else DEFAULT_PREFIX


def _highest_existing_number(db: Session, prefix: str) -> int:
    latest = (
        db.query(Invoice.invoice_number)
        .filter(Invoice.invoice_number.startswith(prefix, autoescape=True))
        .order_by(Invoice.invoice_number.desc())
        .first()
    )
    if not latest:
        return 0
    match = NUMBER_SUFFIX_RE.search(latest.invoice_number)
    return int(match.group(1)) if match else 0


def _increment_sequence(db: Session, prefix: str) -> Optional[int]:
    updated = (
        db.query(InvoiceNumberSequence)
        .filter(InvoiceNumberSequence.prefix == prefix)
        .update(
            {InvoiceNumberSequence.last_number: InvoiceNumberSequence.last_number + 1},
            synchronize_session=False,
        )
    )
    if not updated:
        return None
    return (
        db.query(InvoiceNumberSequence.last_number)
        .filter(InvoiceNumberSequence.prefix == prefix)
        .scalar()
    )


def allocate_invoice_number(db: Session, tenant_id: str) -> str:
    """Reserve the next number for the tenant's prefix inside the caller's transaction.

    The first allocation for a prefix seeds the counter from the greatest number
    already stored, so invoices numbered before the counter existed are never reused.
    """
    prefix = invoice_number_prefix(db, tenant_id)
    number = _increment_sequence(db, prefix)
    if number is None:
        seed = _highest_existing_number(db, prefix) + 1
        try:
            with db.begin_nested():
                db.add(InvoiceNumberSequence(prefix=prefix, last_number=seed))
            number = seed
        except IntegrityError:
            # Another transaction created the counter first
            number = _increment_sequence(db, prefix)
    return f"{prefix}{number:06d}"


def get_scoped_invoice(db: Session, ctx: TenantContext, invoice_id: str, lock: bool = False) -> Invoice:
    query = ctx.scope(db.query(Invoice), Invoice).filter(Invoice.id == invoice_id)
    if lock:
        query = query.with_for_update()
    invoice = query.first()
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


def _build_line_items(items) -> tuple[list[dict], int]:
    rows = []
    invalid = 0
    for item in items:
        raw_price = item.unit_price if item.unit_price is not None else item.price
        unit_price = parse_amount(raw_price)
        quantity = Decimal("1") if item.quantity in (None, "") else parse_amount(item.quantity)
        if unit_price is None or unit_price < ZERO or quantity is None or quantity <= ZERO:
            invalid += 1
            continue
        line_total = parse_amount(item.line_total)
        if line_total is None or line_total < ZERO:
            line_total = calculate_line_total(quantity, unit_price)
        rows.append(
            {
                "product_name": item.product_name or item.product or "Product",
                "brand": item.brand,
                "department": item.department,
                "quantity": quantity,
                "unit_price": to_money(unit_price),
                "line_total": to_money(line_total),
            }
        )
    return rows, invalid


def _parse_adjustment(value, label: str) -> Decimal:
    if value is None or value == "":
        return ZERO
    parsed = parse_amount(value)
    if parsed is None or parsed < ZERO:
        raise ValidationError(f"Invalid {label} amount")
    return to_money(parsed)


def accessory_line_items(inward: Optional[VehicleInward]) -> list[LineItemInput]:
    """Draft line items from the products requested at vehicle intake."""
    if inward is None or not inward.accessories_requested:
        return []
    try:
        requested = json.loads(inward.accessories_requested)
    except ValueError:
        logger.warning("accessories_requested_unreadable", extra={"extra": {"vehicle_inward_id": inward.id}})
        return []
    if not isinstance(requested, list):
        return []
    return [
        LineItemInput(
            product_name=product.get("product") or product.get("product_name"),
            brand=product.get("brand"),
            department=product.get("department"),
            quantity=1,
            unit_price=product.get("price") or 0,
        )
        for product in requested
        if isinstance(product, dict)
    ]


def _customer_name_for(inward: VehicleInward) -> str:
    vehicle = inward.vehicle
    if vehicle is not None and vehicle.customer is not None and vehicle.customer.name:
        return vehicle.customer.name
    return inward.customer_name or UNKNOWN_CUSTOMER


def create_invoice(db: Session, ctx: TenantContext, data: InvoiceCreate, today: Optional[date] = None) -> Invoice:
    ctx.require_tenant()
    if not data.vehicle_inward_id:
        raise ValidationError("vehicleInwardId and lineItems are required")

    inward = (
        ctx.scope(db.query(VehicleInward), VehicleInward)
        .filter(VehicleInward.id == data.vehicle_inward_id)
        .first()
    )
    items = data.line_items or accessory_line_items(inward)
    if not items:
        raise ValidationError("vehicleInwardId and lineItems are required")

    rows, invalid = _build_line_items(items)
    if invalid:
        raise ValidationError(
            f"Invalid prices found in {invalid} line item(s). Please ensure all products have valid prices."
        )

    if inward is None:
        raise NotFoundError("Vehicle inward not found")

    discount = _parse_adjustment(data.discount_amount, "discount")
    tax = _parse_adjustment(data.tax_amount, "tax")
    subtotal = sum((row["line_total"] for row in rows), ZERO)
    amount, total_amount = compute_invoice_amounts(subtotal, discount, tax)

    invoice_date = data.invoice_date or today or utc_today()
    due_date = data.due_date or invoice_date + timedelta(days=get_settings().default_due_days)

    invoice = Invoice(
        tenant_id=inward.tenant_id,
        vehicle_inward_id=inward.id,
        vehicle_id=inward.vehicle_id,
        customer_name=_customer_name_for(inward),
        status="draft",
        invoice_date=invoice_date,
        due_date=due_date,
        amount=amount,
        total_amount=total_amount,
        paid_amount=ZERO,
        balance_amount=total_amount,
        discount_amount=discount,
        discount_reason=data.discount_reason,
        tax_amount=tax,
        notes=data.notes,
    )
    for row in rows:
        invoice.line_items.append(InvoiceLineItem(tenant_id=inward.tenant_id, **row))

    try:
        if data.issue_immediately:
            invoice.invoice_number = allocate_invoice_number(db, inward.tenant_id)
            invoice.status = "issued"
            invoice.issued_at = utc_now()
        db.add(invoice)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("invoice_create_failed", extra={"extra": {"vehicle_inward_id": inward.id}})
        raise InternalError("Failed to create invoice", details=str(exc)) from exc
    db.refresh(invoice)

    logger.info(
        "invoice_created",
        extra={
            "extra": {
                "invoice_id": invoice.id,
                "tenant_id": invoice.tenant_id,
                "status": invoice.status,
                "line_items": len(rows),
            }
        },
    )
    if invoice.status == "issued":
        notify_safely(db, enqueue_invoice_issued, invoice)
    return invoice


def issue_invoice(db: Session, ctx: TenantContext, invoice_id: str, today: Optional[date] = None) -> Invoice:
    ctx.require_tenant()
    invoice = get_scoped_invoice(db, ctx, invoice_id, lock=True)
    if invoice.status != "draft":
        raise ValidationError("Only draft invoices can be issued")

    if not invoice.invoice_number:
        invoice.invoice_number = allocate_invoice_number(db, invoice.tenant_id)
    invoice.status = "issued"
    invoice.issued_at = utc_now()
    if invoice.invoice_date is None:
        invoice.invoice_date = today or utc_today()
    db.commit()
    db.refresh(invoice)

    logger.info(
        "invoice_issued",
        extra={"extra": {"invoice_id": invoice.id, "invoice_number": invoice.invoice_number}},
    )
    notify_safely(db, enqueue_invoice_issued, invoice)
    return invoice


def cancel_invoice(db: Session, ctx: TenantContext, invoice_id: str, reason: Optional[str] = None) -> Invoice:
    ctx.require_tenant()
    invoice = get_scoped_invoice(db, ctx, invoice_id, lock=True)
    if invoice.status == "paid":
        raise ValidationError("Cannot cancel paid invoice")
    if invoice.status == "cancelled":
        raise ValidationError("Invoice is already cancelled")

    invoice.status = "cancelled"
    invoice.cancelled_at = utc_now()
    invoice.cancelled_reason = reason
    db.commit()
    db.refresh(invoice)
    logger.info("invoice_cancelled", extra={"extra": {"invoice_id": invoice.id}})
    return invoice


def update_invoice(db: Session, ctx: TenantContext, invoice_id: str, data: InvoiceUpdate) -> Invoice:
    ctx.require_tenant()
    invoice = get_scoped_invoice(db, ctx, invoice_id, lock=True)
    changes = data.model_dump(exclude_unset=True)
    for field in ("discount_amount", "tax_amount"):
        if field in changes:
            changes[field] = to_money(changes[field])
    for field, value in changes.items():
        setattr(invoice, field, value)

    if "discount_amount" in changes or "tax_amount" in changes:
        subtotal = sum((to_money(item.line_total) for item in invoice.line_items), ZERO)
        invoice.amount, invoice.total_amount = compute_invoice_amounts(
            subtotal, invoice.discount_amount, invoice.tax_amount
        )
        recalculate_invoice_totals(db, invoice)

    db.commit()
    db.refresh(invoice)
    logger.info("invoice_updated", extra={"extra": {"invoice_id": invoice.id, "fields": sorted(changes)}})
    return invoice


def list_invoices(
    db: Session,
    ctx: TenantContext,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> list[Invoice]:
    query = ctx.scope(db.query(Invoice), Invoice).options(selectinload(Invoice.line_items))
    if status and status != "all":
        query = query.filter(Invoice.status == status)
    if start_date is not None:
        query = query.filter(Invoice.invoice_date >= start_date)
    if end_date is not None:
        query = query.filter(Invoice.invoice_date <= end_date)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Invoice.invoice_number.ilike(pattern),
                Invoice.notes.ilike(pattern),
                Invoice.customer_name.ilike(pattern),
            )
        )
    return query.order_by(Invoice.created_at.desc()).all()


def get_invoice_summary(db: Session, ctx: TenantContext) -> dict:
    """Totals across the caller's invoices, overall and per status."""
    invoices = ctx.scope(db.query(Invoice), Invoice).all()

    by_status = {}
    totals = {"total_invoiced": ZERO, "total_received": ZERO, "total_outstanding": ZERO, "total_overdue": ZERO}
    for invoice in invoices:
        total = to_money(invoice.total_amount)
        paid = to_money(invoice.paid_amount)
        balance = to_money(invoice.balance_amount)

        bucket = by_status.setdefault(
            invoice.status,
            {
                "status": invoice.status,
                "count": 0,
                "total_invoiced": ZERO,
                "total_received": ZERO,
                "total_outstanding": ZERO,
            },
        )
        bucket["count"] += 1
        bucket["total_invoiced"] += total
        bucket["total_received"] += paid
        bucket["total_outstanding"] += balance

        totals["total_received"] += paid
        if invoice.status == "cancelled":
            continue
        if invoice.status in INVOICED_STATUSES:
            totals["total_invoiced"] += total
        if invoice.status in OUTSTANDING_STATUSES:
            totals["total_outstanding"] += balance
        if invoice.status == "overdue":
            totals["total_overdue"] += balance

    totals["by_status"] = [by_status[status] for status in sorted(by_status)]
    return totals
