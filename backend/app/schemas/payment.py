"""Payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PaymentMode = Literal["cash", "upi", "card", "bank_transfer", "cheque", "other"]


class PaymentBase(BaseModel):
    amount: Decimal
    payment_mode: PaymentMode
    payment_date: date
    reference_number: Optional[str] = None
    paid_by: Optional[str] = None
    notes: Optional[str] = None


class PaymentCreate(PaymentBase):
    model_config = ConfigDict(populate_by_name=True)

    invoice_id: str = Field(alias="invoiceId")


class PaymentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Optional[Decimal] = None
    payment_mode: Optional[PaymentMode] = None
    payment_date: Optional[date] = None
    reference_number: Optional[str] = None
    paid_by: Optional[str] = None
    notes: Optional[str] = None


class PaymentRead(PaymentBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_id: str
    tenant_id: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaymentEnvelope(BaseModel):
    payment: PaymentRead


class PaymentListResponse(BaseModel):
    payments: List[PaymentRead]


class PaymentDeleted(BaseModel):
    success: bool
