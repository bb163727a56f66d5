"""Payment routes; every write recomputes the owning invoice."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_finance_context
from backend.app.schemas.payment import PaymentCreate, PaymentDeleted, PaymentEnvelope, PaymentRead, PaymentUpdate
from backend.app.services import payments as payment_service
from backend.app.services.tenancy import TenantContext

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentEnvelope, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    payment, _ = payment_service.record_payment(db, ctx, payload, created_by=ctx.user_id)
    return {"payment": PaymentRead.model_validate(payment)}


@router.put("/{payment_id}", response_model=PaymentEnvelope)
async def update_payment(
    payment_id: str,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    payment = payment_service.update_payment(db, ctx, payment_id, payload)
    return {"payment": PaymentRead.model_validate(payment)}


@router.delete("/{payment_id}", response_model=PaymentDeleted)
async def delete_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_finance_context),
):
    payment_service.delete_payment(db, ctx, payment_id)
    return {"success": True}
