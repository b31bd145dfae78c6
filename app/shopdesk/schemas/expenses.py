from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ExpenseCreateRequest(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    amount: Decimal = Field(..., ge=0)
    category: str | None = Field(default=None, max_length=100)
    description: str | None = None
    spent_on: datetime | None = None


class ExpenseItem(BaseModel):
    id: str
    title: str
    amount: float
    category: str
    description: str | None
    spent_on: datetime
    created_by: str | None
    created_at: datetime


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseItem]
    total: float
    trace_id: str
