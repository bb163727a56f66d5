"""Invoice routes for finance staff."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_finance_context
from backend.app.schemas.invoice import (
    InvoiceCancel,
    InvoiceCreate,
    InvoiceDetail,
    InvoiceDetailEnvelope,
    InvoiceEnvelope,
    InvoiceListResponse,
    InvoiceRead,
    InvoiceSummary,
    InvoiceSummaryResponse,
    InvoiceUpdate,
    InvoiceWithItems,
)
from backend.app.schemas.payment import PaymentListResponse, PaymentRead
from backend.app.services import invoices as invoice_service
from backend.app.services.notifications import describe_vehicle
from backend.app.services.payments import list_payments_for_invoice
from backend.app.services.tenancy import TenantContext

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    status: Optional[str] = None,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    invoices = invoice_service.list_invoices(
        db, ctx, status=status, start_date=startDate, end_date=endDate, search=search
    )
    return {"invoices": [InvoiceWithItems.model_validate(invoice) for invoice in invoices]}


@router.post("", response_model=InvoiceEnvelope, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    invoice = invoice_service.create_invoice(db, ctx, payload)
    return {"invoice": InvoiceRead.model_validate(invoice)}


@router.get("/summary", response_model=InvoiceSummaryResponse, response_model_by_alias=True)
async def get_invoice_summary(
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    summary = invoice_service.get_invoice_summary(db, ctx)
    return {"summary": InvoiceSummary(**summary)}


@router.get("/{invoice_id}", response_model=InvoiceDetailEnvelope)
async def get_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    invoice = invoice_service.get_scoped_invoice(db, ctx, invoice_id)
    vehicle, customer = describe_vehicle(invoice)
    base = InvoiceWithItems.model_validate(invoice)
    detail = InvoiceDetail(
        **base.model_dump(),
        payments=[PaymentRead.model_validate(payment) for payment in invoice.payments],
        vehicle=vehicle,
        customer=customer,
    )
    return {"invoice": detail}


@router.patch("/{invoice_id}", response_model=InvoiceEnvelope)
async def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    invoice = invoice_service.update_invoice(db, ctx, invoice_id, payload)
    return {"invoice": InvoiceRead.model_validate(invoice)}


@router.delete("/{invoice_id}", response_model=InvoiceEnvelope)
async def cancel_invoice(
    invoice_id: str,
    payload: Optional[InvoiceCancel] = None,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    reason = payload.reason if payload else None
    invoice = invoice_service.cancel_invoice(db, ctx, invoice_id, reason)
    return {"invoice": InvoiceRead.model_validate(invoice)}


@router.post("/{invoice_id}/issue", response_model=InvoiceEnvelope)
async def issue_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    invoice = invoice_service.issue_invoice(db, ctx, invoice_id)
    return {"invoice": InvoiceRead.model_validate(invoice)}


@router.get("/{invoice_id}/payments", response_model=PaymentListResponse)
async def list_invoice_payments(
    invoice_id: str,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    payments = list_payments_for_invoice(db, ctx, invoice_id)
    return {"payments": [PaymentRead.model_validate(payment) for payment in payments]}
