from uuid import UUID

from pydantic import BaseModel, model_validator


class WhatsAppStatusResponse(BaseModel):
    ready: bool
    hasQR: bool = False
    queueLength: int = 0
    error: str | None = None


class WhatsAppQrResponse(BaseModel):
    qr: str | None
    message: str | None = None


class SendBillRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {"sale_id": "4f7f2c5e-9cfd-4efa-a575-2a0ad38df4e8"},
                {"phone": "919876543210", "message": "Your bill is ready"},
            ]
        }
    }

    sale_id: UUID | None = None
    phone: str | None = None
    message: str | None = None

    @model_validator(mode="after")
    def ensure_target(self):
        if self.sale_id is None and not (self.phone and self.message):
            raise ValueError("sale_id or phone and message are required")
        return self


class SendBillResponse(BaseModel):
    success: bool
    message: str
    trace_id: str
