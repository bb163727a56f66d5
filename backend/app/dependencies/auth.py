"""Request dependencies: tenant context, role gating and cron authentication."""

import hmac

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from backend.app.core.errors import ForbiddenError, UnauthorizedError
from backend.app.core.security import get_current_user
from backend.app.core.settings import get_settings
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.services.tenancy import TenantContext, resolve_tenant_context

FINANCE_ROLES = ("admin", "manager", "accountant")


def get_tenant_context(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TenantContext:
    return resolve_tenant_context(db, current_user)


def require_roles(*roles: str):
    """Dependency factory admitting super-admins and users holding one of ``roles``."""

    def checker(ctx: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if ctx.is_super_admin or ctx.role in roles:
            return ctx
        raise ForbiddenError("Insufficient permissions")

    return checker


get_finance_context = require_roles(*FINANCE_ROLES)


def verify_cron_secret(authorization: str | None = Header(default=None)) -> None:
    secret = get_settings().cron_secret
    if not secret:
        return
    expected = f"Bearer {secret}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise UnauthorizedError()
