from sqlalchemy import Boolean, Column, Date, DateTime, String, Text, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_uuid

USER_ROLES = ("admin", "manager", "coordinator", "installer", "accountant")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(32), nullable=False, default="coordinator")
    department = Column(String(255), nullable=True)
    designation = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    join_date = Column(Date, nullable=True)
    status = Column(String(32), nullable=False, default="active")
    hashed_password = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    memberships = relationship(
        "TenantUser",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="TenantUser.created_at",
    )
