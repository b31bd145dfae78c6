from datetime import datetime

from pydantic import BaseModel


class TopProduct(BaseModel):
    name: str
    quantity: int
    revenue: float
    profit: float


class AnalyticsSummaryResponse(BaseModel):
    days: int
    start_date: datetime
    end_date: datetime
    total_revenue: float
    total_profit: float
    total_expenses: float
    total_transactions: int
    profit_margin: float
    sales_growth: float
    profit_growth: float
    top_products: list[TopProduct]
    trace_id: str
