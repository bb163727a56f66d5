"""Invoice line item schemas."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class LineItemInput(BaseModel):
    """Line item as submitted by the invoice form.

    Prices and quantities are left untyped so that invalid entries can be
    counted and reported together instead of failing on the first one.
    ``product`` and ``price`` are accepted as older aliases of
    ``product_name`` and ``unit_price``.
    """

    model_config = ConfigDict(extra="ignore")

    product_name: Optional[str] = None
    product: Optional[str] = None
    brand: Optional[str] = None
    department: Optional[str] = None
    quantity: Any = None
    unit_price: Any = None
    price: Any = None
    line_total: Any = None


class InvoiceLineItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_id: str
    tenant_id: str
    product_name: str
    brand: Optional[str] = None
    department: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
