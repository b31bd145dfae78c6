from pydantic import BaseModel, Field


class CommissionRowResponse(BaseModel):
    employee_id: str
    employee_name: str
    commission_type: str
    commission_rate: float
    total_sales: float
    sales_count: int
    target_achieved: int
    commission_earned: int
    month: str


class CommissionSummaryResponse(BaseModel):
    total_commissions: float
    total_sales: float
    avg_commission: float
    employees: int


class CommissionCalculationResponse(BaseModel):
    month: str
    commissions: list[CommissionRowResponse]
    summary: CommissionSummaryResponse
    trace_id: str


class CommissionBulkDeleteRequest(BaseModel):
    employee_ids: list[str] = Field(..., min_length=1, description="Employee codes whose commission is reset.")
