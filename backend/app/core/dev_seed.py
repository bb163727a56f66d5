import logging
import os

from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.models.tenant import Tenant
from backend.app.models.tenant_user import TenantUser
from backend.app.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_TENANT_CODE = "DEMO"
DEFAULT_DEV_USERS = [
    ("admin@example.com", "admin"),
    ("accounts@example.com", "accountant"),
]


def ensure_default_dev_tenant(db: Session) -> None:
    """
    Create a demo tenant with an admin and an accountant for local development.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    created = False
    tenant = db.query(Tenant).filter(Tenant.tenant_code == DEFAULT_DEV_TENANT_CODE).first()
    if tenant is None:
        tenant = Tenant(name="Demo Motors", tenant_code=DEFAULT_DEV_TENANT_CODE, subscription_status="active")
        db.add(tenant)
        db.flush()
        created = True

    for email, role in DEFAULT_DEV_USERS:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            continue

        user = User(
            email=email,
            name=role.title(),
            role=role,
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            is_active=True,
        )
        user.memberships.append(TenantUser(tenant_id=tenant.id, role=role))
        db.add(user)
        created = True

    if created:
        db.commit()
        logger.info("dev_seed_created", extra={"extra": {"tenant_id": tenant.id}})
