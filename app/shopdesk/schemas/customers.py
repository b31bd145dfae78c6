from datetime import datetime

from pydantic import BaseModel, Field


class CustomerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    address: str | None = None


class CustomerUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    address: str | None = None


class CustomerItem(BaseModel):
    id: str
    name: str
    phone: str | None
    email: str | None
    address: str | None
    order_count: int
    total_spent: float
    last_order_date: datetime | None
    created_at: datetime


class CustomerListResponse(BaseModel):
    customers: list[CustomerItem]
    trace_id: str
