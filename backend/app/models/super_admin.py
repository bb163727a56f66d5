"""Allowlist of cross-tenant operators."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base, generate_uuid


class SuperAdmin(Base):
    __tablename__ = "super_admins"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
