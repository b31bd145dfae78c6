from pydantic import BaseModel


class LowStockProduct(BaseModel):
    id: str
    name: str
    sku: str | None
    stock: int
    min_stock: int


class LowStockResponse(BaseModel):
    message: str
    products: list[LowStockProduct]
    alert_message: str | None = None
    phone: str | None = None
    whatsapp_url: str | None = None
    trace_id: str
