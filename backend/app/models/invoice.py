"""Invoice model for vehicle service billing."""

from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base, generate_uuid

INVOICE_STATUSES = ("draft", "issued", "partial", "paid", "overdue", "cancelled")


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    vehicle_inward_id = Column(String(36), ForeignKey("vehicle_inward.id"), nullable=True, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=True, index=True)
    customer_name = Column(String(255), nullable=True)

    invoice_number = Column(String(64), nullable=True, unique=True, index=True)
    status = Column(String(16), default="draft", nullable=False, index=True)
    invoice_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)

    amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    total_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    paid_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    balance_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    discount_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    discount_reason = Column(String(255), nullable=True)
    tax_amount = Column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    notes = Column(Text, nullable=True)

    issued_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    vehicle_inward = relationship("VehicleInward", back_populates="invoices")
    vehicle = relationship("Vehicle")
    line_items = relationship("InvoiceLineItem", back_populates="invoice", cascade="all, delete-orphan")
    payments = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.payment_date.desc()",
    )
