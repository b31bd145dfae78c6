from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class StoreSettingsResponse(BaseModel):
    store_name: str
    address: str | None
    phone: str | None
    email: str | None
    gst: str | None
    tax_rate: float
    terms: str | None
    bill_prefix: str
    bill_counter: int
    whatsapp_message: str | None
    discount_mode: bool
    bill_format: str
    delete_password_configured: bool
    trace_id: str


class StoreSettingsUpdateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "store_name": "Fashion Store",
                "tax_rate": 5,
                "bill_prefix": "FS",
                "delete_password": "s3cret-delete",
            }
        }
    }

    store_name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    gst: str | None = None
    tax_rate: Decimal | None = Field(default=None, ge=0, le=100)
    terms: str | None = None
    bill_prefix: str | None = Field(default=None, min_length=1, max_length=20)
    bill_counter: int | None = Field(default=None, ge=1)
    whatsapp_message: str | None = None
    discount_mode: bool | None = None
    bill_format: Literal["professional", "simple"] | None = None
    delete_password: str | None = Field(default=None, description="Write-only; stored as a hash.")
    current_delete_password: str | None = Field(
        default=None,
        description="Required to replace an existing delete password.",
    )


class PlanLimitsResponse(BaseModel):
    max_products: int
    max_users: int
    current_products: int
    current_users: int
    plan_name: str
    trace_id: str


class DropdownDataPayload(BaseModel):
    categories: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    materials: list[str] = Field(default_factory=list)
    brands: list[str] = Field(default_factory=list)
    suppliers: list[str] = Field(default_factory=list)


class FieldDefinition(BaseModel):
    name: str = Field(..., min_length=1)
    type: str = "text"
    required: bool = False
    enabled: bool = True
    options: list[str] | None = None


class TenantFieldsRequest(BaseModel):
    business_type: str | None = None
    fields: list[FieldDefinition]


class TenantFieldsResponse(BaseModel):
    business_type: str | None
    fields: list[FieldDefinition]
    trace_id: str


class TenantFeaturesResponse(BaseModel):
    plan_name: str
    features: list[str]
    trace_id: str
