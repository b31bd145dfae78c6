from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

CommissionType = Literal["none", "percentage"]


class EmployeeCreateRequest(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = None
    email: str | None = None
    department: str | None = None
    position: str | None = None
    salary: Decimal = Field(Decimal("0"), ge=0)
    commission_type: CommissionType = "none"
    commission_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    sales_target: Decimal = Field(Decimal("0"), ge=0)
    status: str = "active"


class EmployeeUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = None
    email: str | None = None
    department: str | None = None
    position: str | None = None
    salary: Decimal | None = Field(default=None, ge=0)
    commission_type: CommissionType | None = None
    commission_rate: Decimal | None = Field(default=None, ge=0, le=100)
    sales_target: Decimal | None = Field(default=None, ge=0)
    status: str | None = None


class EmployeeItem(BaseModel):
    id: str
    employee_code: str
    name: str
    phone: str | None
    email: str | None
    department: str | None
    position: str | None
    salary: float
    commission_type: str
    commission_rate: float
    sales_target: float
    status: str
    created_at: datetime


class EmployeeListResponse(BaseModel):
    employees: list[EmployeeItem]
    trace_id: str
