from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_uuid


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)

    vehicles = relationship("Vehicle", back_populates="customer")
