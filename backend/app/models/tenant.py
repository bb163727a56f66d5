"""Tenant model: an isolated customer organization owning all business data."""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base, generate_uuid


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    tenant_code = Column(String(32), nullable=True, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    subscription_status = Column(String(32), nullable=False, default="trial")
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    memberships = relationship("TenantUser", back_populates="tenant", cascade="all, delete-orphan")
    subscriptions = relationship(
        "Subscription",
        back_populates="tenant",
        cascade="all, delete-orphan",
        order_by="Subscription.created_at.desc()",
    )
