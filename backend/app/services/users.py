"""User administration and credential checks."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.core.errors import ForbiddenError, NotFoundError, ValidationError
from backend.app.core.security import get_password_hash, verify_password
from backend.app.models.payment import Payment
from backend.app.models.super_admin import SuperAdmin
from backend.app.models.tenant import Tenant
from backend.app.models.tenant_user import TenantUser
from backend.app.models.user import User
from backend.app.schemas.user import LinkToTenantRequest, UpdateProfileRequest, UserCreateRequest
from backend.app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def default_password_for(email: str) -> str:
    return f"{email}123!"


def is_tenant_admin(db: Session, user_id: str, tenant_id: str) -> bool:
    return (
        db.query(TenantUser.id)
        .filter(TenantUser.user_id == user_id, TenantUser.tenant_id == tenant_id, TenantUser.role == "admin")
        .first()
        is not None
    )


def _shares_admin_tenant(db: Session, admin_id: str, user_id: str) -> bool:
    target_tenants = select(TenantUser.tenant_id).where(TenantUser.user_id == user_id).correlate(None)
    return (
        db.query(TenantUser.id)
        .filter(
            TenantUser.user_id == admin_id,
            TenantUser.role == "admin",
            TenantUser.tenant_id.in_(target_tenants),
        )
        .first()
        is not None
    )


def _get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def email_exists(db: Session, email: str) -> bool:
    return find_user_by_email(db, email) is not None


def authenticate(db: Session, email: str, password: str) -> User:
    user = find_user_by_email(db, email)
    if not user or not user.hashed_password:
        raise ValidationError("Invalid credentials")
    if not user.is_active:
        raise ValidationError("User is inactive")
    if not verify_password(password, user.hashed_password):
        raise ValidationError("Invalid credentials")
    return user


def create_user(db: Session, ctx: TenantContext, data: UserCreateRequest) -> User:
    tenant_id = data.tenant_id or ctx.tenant_id
    if not tenant_id:
        raise ValidationError("Tenant ID required")
    if not ctx.is_super_admin and not is_tenant_admin(db, ctx.user_id, tenant_id):
        raise ForbiddenError("Only admins can create users")
    if db.query(Tenant.id).filter(Tenant.id == tenant_id).first() is None:
        raise NotFoundError("Tenant not found")

    email = normalize_email(data.email)
    existing = find_user_by_email(db, email)
    if existing is not None:
        tenant_ids = {membership.tenant_id for membership in existing.memberships}
        if tenant_id in tenant_ids:
            raise ValidationError("User already exists in this tenant")
        if tenant_ids:
            raise ValidationError("User already exists in another tenant")
        raise ValidationError("User already exists")

    user = User(
        email=email,
        name=data.name,
        phone=data.phone,
        role=data.role,
        department=", ".join(data.departments) if data.departments else None,
        status=data.status or "active",
        join_date=data.join_date,
        hashed_password=get_password_hash(data.password or default_password_for(email)),
        is_active=True,
    )
    user.memberships.append(TenantUser(tenant_id=tenant_id, role=data.role))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_created", extra={"extra": {"user_id": user.id, "tenant_id": tenant_id, "role": user.role}})
    return user


def delete_user(db: Session, ctx: TenantContext, user_id: str) -> None:
    if user_id == ctx.user_id:
        raise ValidationError("Cannot delete your own account")
    user = _get_user(db, user_id)
    if not ctx.is_super_admin and not _shares_admin_tenant(db, ctx.user_id, user.id):
        raise ForbiddenError("Only admins can delete users")

    db.query(Payment).filter(Payment.created_by == user.id).update(
        {Payment.created_by: None}, synchronize_session=False
    )
    db.query(SuperAdmin).filter(SuperAdmin.user_id == user.id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()
    logger.info("user_deleted", extra={"extra": {"user_id": user_id, "deleted_by": ctx.user_id}})


def link_user_to_tenant(db: Session, ctx: TenantContext, data: LinkToTenantRequest) -> str:
    """Create or update the user's membership; returns ``created`` or ``updated``."""
    if not ctx.is_super_admin and not is_tenant_admin(db, ctx.user_id, data.tenant_id):
        raise ForbiddenError("Only admins can link users to this tenant")
    user = _get_user(db, data.user_id)
    if db.query(Tenant.id).filter(Tenant.id == data.tenant_id).first() is None:
        raise NotFoundError("Tenant not found")

    membership = (
        db.query(TenantUser)
        .filter(TenantUser.user_id == user.id, TenantUser.tenant_id == data.tenant_id)
        .first()
    )
    if membership is not None:
        membership.role = data.role
        action = "updated"
    else:
        db.add(TenantUser(user_id=user.id, tenant_id=data.tenant_id, role=data.role))
        action = "created"
    db.commit()
    logger.info(
        "user_linked_to_tenant",
        extra={"extra": {"user_id": user.id, "tenant_id": data.tenant_id, "action": action}},
    )
    return action


def update_profile(db: Session, ctx: TenantContext, data: UpdateProfileRequest) -> User:
    user = _get_user(db, data.user_id)
    if user.id != ctx.user_id and not ctx.is_super_admin and not _shares_admin_tenant(db, ctx.user_id, user.id):
        raise ForbiddenError("You can only update your own profile")

    changes = data.model_dump(exclude_unset=True, exclude={"user_id"})
    if changes.get("email"):
        email = normalize_email(changes["email"])
        other = find_user_by_email(db, email)
        if other is not None and other.id != user.id:
            raise ValidationError("Email already in use")
        changes["email"] = email
    password = changes.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)
    for field, value in changes.items():
        if field == "email" and not value:
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    logger.info("user_profile_updated", extra={"extra": {"user_id": user.id, "fields": sorted(changes)}})
    return user
