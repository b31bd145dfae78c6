from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Cotton Kurti",
                "category": "Kurtis",
                "price": 799,
                "cost_price": 450,
                "stock": 12,
                "min_stock": 3,
                "attributes": {"sizes": "S, M, L", "material": "Cotton"},
            }
        }
    }

    name: str = Field(..., min_length=1, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    barcode: str | None = Field(default=None, max_length=100)
    category: str | None = Field(default=None, max_length=100)
    price: Decimal = Field(Decimal("0"), ge=0)
    original_price: Decimal | None = Field(default=None, ge=0)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    stock: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    status: str | None = None
    attributes: dict = Field(default_factory=dict)


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    sku: str | None = None
    barcode: str | None = None
    category: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    original_price: Decimal | None = Field(default=None, ge=0)
    cost_price: Decimal | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    min_stock: int | None = Field(default=None, ge=0)
    status: str | None = None
    attributes: dict | None = None


class ProductItem(BaseModel):
    id: str
    name: str
    sku: str
    barcode: str
    category: str
    price: float
    original_price: float
    cost_price: float
    stock: int
    min_stock: int
    status: str
    attributes: dict
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    products: list[ProductItem]
    trace_id: str
