import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_zoravo.db")

import pytest  # noqa: E402

from backend.app.core.security import create_access_token, get_password_hash  # noqa: E402
from backend.app.db.base import Base  # noqa: E402
from backend.app.db.session import SessionLocal, engine  # noqa: E402
from backend.app.models.customer import Customer  # noqa: E402
from backend.app.models.super_admin import SuperAdmin  # noqa: E402
from backend.app.models.tenant import Tenant  # noqa: E402
from backend.app.models.tenant_user import TenantUser  # noqa: E402
from backend.app.models.user import User  # noqa: E402
from backend.app.models.vehicle import Vehicle  # noqa: E402
from backend.app.models.vehicle_inward import VehicleInward  # noqa: E402


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class Factory:
    def __init__(self, db):
        self.db = db

    def tenant(self, name="Acme Motors", tenant_code=None, **fields):
        tenant = Tenant(name=name, tenant_code=tenant_code, **fields)
        self.db.add(tenant)
        self.db.commit()
        self.db.refresh(tenant)
        return tenant

    def user(self, email, tenant=None, role="admin", password="secret123", super_admin=False):
        user = User(
            email=email,
            name=email.split("@")[0],
            role=role,
            hashed_password=get_password_hash(password),
            is_active=True,
        )
        self.db.add(user)
        self.db.flush()
        if tenant is not None:
            self.db.add(TenantUser(tenant_id=tenant.id, user_id=user.id, role=role))
        if super_admin:
            self.db.add(SuperAdmin(user_id=user.id))
        self.db.commit()
        self.db.refresh(user)
        return user

    def headers(self, user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    def vehicle_inward(self, tenant, customer_name="Ravi Kumar", registration_number="KA01AB1234", with_vehicle=True):
        vehicle_id = None
        if with_vehicle:
            customer = Customer(tenant_id=tenant.id, name=customer_name, phone="9999999999")
            self.db.add(customer)
            self.db.flush()
            vehicle = Vehicle(
                tenant_id=tenant.id,
                customer_id=customer.id,
                registration_number=registration_number,
                make="Hyundai",
                model="Creta",
            )
            self.db.add(vehicle)
            self.db.flush()
            vehicle_id = vehicle.id
        inward = VehicleInward(
            tenant_id=tenant.id,
            vehicle_id=vehicle_id,
            registration_number=registration_number,
            customer_name=customer_name,
        )
        self.db.add(inward)
        self.db.commit()
        self.db.refresh(inward)
        return inward


@pytest.fixture
def factory(db):
    return Factory(db)
