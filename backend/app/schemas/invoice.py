"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.schemas.invoice_line_item import InvoiceLineItemRead, LineItemInput
from backend.app.schemas.payment import PaymentRead


class InvoiceCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vehicle_inward_id: Optional[str] = Field(default=None, alias="vehicleInwardId")
    line_items: List[LineItemInput] = Field(default_factory=list, alias="lineItems")
    invoice_date: Optional[date] = Field(default=None, alias="invoiceDate")
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    discount_amount: Any = Field(default=None, alias="discountAmount")
    discount_reason: Optional[str] = Field(default=None, alias="discountReason")
    tax_amount: Any = Field(default=None, alias="taxAmount")
    notes: Optional[str] = None
    issue_immediately: bool = Field(default=False, alias="issueImmediately")


class InvoiceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    customer_name: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    discount_amount: Optional[Decimal] = None
    discount_reason: Optional[str] = None
    tax_amount: Optional[Decimal] = None
    notes: Optional[str] = None

    @field_validator("discount_amount", "tax_amount")
    @classmethod
    def non_negative(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        if value is not None and value < 0:
            raise ValueError("must not be negative")
        return value


class InvoiceCancel(BaseModel):
    reason: Optional[str] = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    vehicle_inward_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    customer_name: Optional[str] = None
    invoice_number: Optional[str] = None
    status: str
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None

    amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    discount_amount: Decimal
    discount_reason: Optional[str] = None
    tax_amount: Decimal
    notes: Optional[str] = None

    issued_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class InvoiceWithItems(InvoiceRead):
    line_items: List[InvoiceLineItemRead] = []


class VehicleSummary(BaseModel):
    id: Optional[str] = None
    registration_number: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None


class CustomerSummary(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class InvoiceDetail(InvoiceWithItems):
    payments: List[PaymentRead] = []
    vehicle: Optional[VehicleSummary] = None
    customer: Optional[CustomerSummary] = None


class InvoiceEnvelope(BaseModel):
    invoice: InvoiceRead


class InvoiceDetailEnvelope(BaseModel):
    invoice: InvoiceDetail


class InvoiceListResponse(BaseModel):
    invoices: List[InvoiceWithItems]


class StatusSummary(BaseModel):
    status: str
    count: int
    total_invoiced: Decimal
    total_received: Decimal
    total_outstanding: Decimal


class InvoiceSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_invoiced: Decimal = Field(alias="totalInvoiced")
    total_received: Decimal = Field(alias="totalReceived")
    total_outstanding: Decimal = Field(alias="totalOutstanding")
    total_overdue: Decimal = Field(alias="totalOverdue")
    by_status: List[StatusSummary] = Field(alias="byStatus")


class InvoiceSummaryResponse(BaseModel):
    summary: InvoiceSummary
