"""Tenant resolution for authenticated users.

Every service call receives a ``TenantContext`` explicitly; nothing about the
current tenant is kept in module or thread state.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import false
from sqlalchemy.orm import Query, Session

from backend.app.core.errors import ValidationError
from backend.app.core.settings import get_settings
from backend.app.models.super_admin import SuperAdmin
from backend.app.models.tenant_user import TenantUser
from backend.app.models.user import User


@dataclass(frozen=True)
class TenantContext:
    user_id: str
    tenant_id: Optional[str]
    is_super_admin: bool = False
    role: Optional[str] = None

    def scope(self, query: Query, model) -> Query:
        """Restrict ``query`` to rows of ``model`` the caller may see."""
        if self.is_super_admin:
            return query
        if not self.tenant_id:
            return query.filter(false())
        return query.filter(model.tenant_id == self.tenant_id)

    def require_tenant(self) -> None:
        if not self.tenant_id and not self.is_super_admin:
            raise ValidationError("Tenant ID required")

    def can_access_tenant(self, tenant_id: Optional[str]) -> bool:
        return self.is_super_admin or (self.tenant_id is not None and self.tenant_id == tenant_id)


def _primary_membership(db: Session, user_id: str) -> Optional[TenantUser]:
    return (
        db.query(TenantUser)
        .filter(TenantUser.user_id == user_id)
        .order_by(TenantUser.created_at.asc(), TenantUser.id.asc())
        .first()
    )


def get_tenant_id_for_user(db: Session, user_id: str) -> Optional[str]:
    membership = _primary_membership(db, user_id)
    return membership.tenant_id if membership else None


def check_is_super_admin(db: Session, user_id: str) -> bool:
    """Allowlisted users, and admins of the platform tenant, operate across tenants."""
    if db.query(SuperAdmin.id).filter(SuperAdmin.user_id == user_id).first():
        return True
    platform_admin = (
        db.query(TenantUser.id)
        .filter(
            TenantUser.user_id == user_id,
            TenantUser.tenant_id == get_settings().platform_tenant_id,
            TenantUser.role == "admin",
        )
        .first()
    )
    return platform_admin is not None


def resolve_tenant_context(db: Session, user: User) -> TenantContext:
    membership = _primary_membership(db, user.id)
    return TenantContext(
        user_id=user.id,
        tenant_id=membership.tenant_id if membership else None,
        is_super_admin=check_is_super_admin(db, user.id),
        role=membership.role if membership else user.role,
    )
