from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_uuid


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True, index=True)
    registration_number = Column(String(32), nullable=False)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)

    customer = relationship("Customer", back_populates="vehicles")
    inwards = relationship("VehicleInward", back_populates="vehicle")
