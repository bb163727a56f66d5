from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.tenant import Tenant  # noqa: F401
from backend.app.models.subscription import Subscription  # noqa: F401
from backend.app.models.user import User  # noqa: F401
from backend.app.models.tenant_user import TenantUser  # noqa: F401
from backend.app.models.super_admin import SuperAdmin  # noqa: F401
from backend.app.models.customer import Customer  # noqa: F401
from backend.app.models.vehicle import Vehicle  # noqa: F401
from backend.app.models.vehicle_inward import VehicleInward  # noqa: F401
from backend.app.models.invoice import Invoice  # noqa: F401
from backend.app.models.invoice_line_item import InvoiceLineItem  # noqa: F401
from backend.app.models.invoice_number_sequence import InvoiceNumberSequence  # noqa: F401
from backend.app.models.payment import Payment  # noqa: F401
from backend.app.models.notification_queue import NotificationQueueItem  # noqa: F401
