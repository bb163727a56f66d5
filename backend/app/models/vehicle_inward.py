"""Vehicle inward: a service-intake record that invoices are raised against."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base, generate_uuid


class VehicleInward(Base):
    __tablename__ = "vehicle_inward"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=True, index=True)
    registration_number = Column(String(32), nullable=True)
    customer_name = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_email = Column(String(255), nullable=True)
    status = Column(String(32), nullable=False, default="pending")
    accessories_requested = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    vehicle = relationship("Vehicle", back_populates="inwards")
    invoices = relationship("Invoice", back_populates="vehicle_inward")
