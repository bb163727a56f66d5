"""Invoice line item model for billed products."""

from decimal import Decimal

from sqlalchemy import Column, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_uuid


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    quantity = Column(Numeric(10, 2), nullable=False, default=Decimal("1"))
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="line_items")
