from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

PurchaseStatus = Literal["pending", "completed", "cancelled"]


class PurchaseLine(BaseModel):
    name: str = Field(..., min_length=1)
    sku: str | None = None
    quantity: int = Field(..., ge=0)
    unit_price: Decimal = Field(Decimal("0"), ge=0)


class PurchaseCreateRequest(BaseModel):
    po_number: str | None = None
    supplier_name: str = Field(..., min_length=1, max_length=255)
    supplier_contact: str | None = None
    order_date: datetime | None = None
    status: PurchaseStatus = "pending"
    items: list[PurchaseLine]
    notes: str | None = None


class PurchaseUpdateRequest(BaseModel):
    supplier_name: str | None = Field(default=None, min_length=1, max_length=255)
    supplier_contact: str | None = None
    order_date: datetime | None = None
    status: PurchaseStatus | None = None
    items: list[PurchaseLine] | None = None
    notes: str | None = None


class PurchaseLineResponse(BaseModel):
    name: str
    sku: str | None
    quantity: int
    unit_price: float
    total: float


class PurchaseItem(BaseModel):
    id: str
    po_number: str
    supplier_name: str
    supplier_contact: str | None
    order_date: datetime
    status: str
    items: list[PurchaseLineResponse]
    subtotal: float
    tax: float
    total: float
    notes: str | None
    received_at: datetime | None
    created_by: str | None
    created_at: datetime


class PurchaseListResponse(BaseModel):
    purchases: list[PurchaseItem]
    trace_id: str
