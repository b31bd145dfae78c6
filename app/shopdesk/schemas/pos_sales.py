from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.shopdesk.schemas.common import ListPaginationMeta
from app.shopdesk.schemas.inventory import ProductItem


class SaleLineCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(1, ge=1)
    price: Decimal | None = Field(
        default=None,
        ge=0,
        description="Cashier unit-price override; the catalog price is used when omitted.",
    )


class SaleCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "items": [{"product_id": "4f7f2c5e-9cfd-4efa-a575-2a0ad38df4e8", "quantity": 2}],
                "discount": 10,
                "customer_name": "Asha",
                "customer_phone": "9876543210",
                "payment_method": "cash",
                "staff_member": "Ravi",
            }
        }
    }

    items: list[SaleLineCreate]
    discount: Decimal = Field(Decimal("0"), ge=0, le=100)
    tax_rate: Decimal | None = Field(default=None, ge=0, le=100)
    customer_name: str | None = Field(default=None, max_length=255)
    customer_phone: str | None = Field(default=None, max_length=50)
    payment_method: str = Field("cash", max_length=30)
    staff_member: str | None = Field(default=None, max_length=255)
    cashier: str | None = Field(default=None, max_length=255)


class SaleItemResponse(BaseModel):
    product_id: str | None
    name: str
    price: float
    quantity: int
    total: float


class SaleResponse(BaseModel):
    id: str
    bill_no: str
    customer_name: str
    customer_phone: str | None
    staff_member: str | None
    cashier: str | None
    items: list[SaleItemResponse]
    subtotal: float
    discount: float
    discount_amount: float
    tax_rate: float
    tax: float
    total: float
    payment_method: str
    store_name: str | None
    created_at: datetime


class SaleListResponse(BaseModel):
    sales: list[SaleResponse]
    pagination: ListPaginationMeta
    trace_id: str


class HeldBillLine(BaseModel):
    product_id: str = Field(..., min_length=1)
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class HeldBillCreateRequest(BaseModel):
    items: list[HeldBillLine]
    discount: Decimal = Field(Decimal("0"), ge=0, le=100)
    customer_name: str | None = None
    customer_phone: str | None = None


class HeldBillResponse(BaseModel):
    hold_code: str
    items: list[SaleItemResponse]
    discount: float
    customer_name: str | None
    customer_phone: str | None
    subtotal: float
    total: float
    created_by: str | None
    created_at: datetime


class HeldBillListResponse(BaseModel):
    held_bills: list[HeldBillResponse]
    trace_id: str


class ScanKeyEvent(BaseModel):
    key: str = Field(..., min_length=1)
    at_ms: float = Field(..., ge=0)


class ScanRequest(BaseModel):
    keys: list[ScanKeyEvent] = Field(..., min_length=1)


class ScanResponse(BaseModel):
    barcode: str | None
    product: ProductItem | None = None
    trace_id: str


class WhatsAppLinkResponse(BaseModel):
    sale_id: str
    phone: str
    message: str
    link: str
    receipt_url: str
