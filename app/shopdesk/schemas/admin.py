from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from app.shopdesk.schemas.tenant_config import FieldDefinition

PlanStatus = Literal["active", "inactive"]
TenantStatus = Literal["active", "inactive", "suspended"]
ReferralStatus = Literal["Pending", "Completed"]


class PlanCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(Decimal("0"), ge=0)
    description: str | None = None
    features: list[str] = Field(default_factory=list)
    allowed_features: list[str] = Field(default_factory=list)
    max_products: int = Field(10, ge=1)
    max_users: int = Field(5, ge=1)
    status: PlanStatus = "active"


class PlanUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    price: Decimal | None = Field(default=None, ge=0)
    description: str | None = None
    features: list[str] | None = None
    allowed_features: list[str] | None = None
    max_products: int | None = Field(default=None, ge=1)
    max_users: int | None = Field(default=None, ge=1)
    status: PlanStatus | None = None


class PlanItem(BaseModel):
    id: str
    name: str
    price: float
    description: str | None
    features: list[str]
    allowed_features: list[str]
    max_products: int
    max_users: int
    status: str
    subscribers: int = 0
    created_at: datetime


class PlanListResponse(BaseModel):
    plans: list[PlanItem]
    trace_id: str


class TenantCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Fashion Store",
                "email": "owner@fashion.example",
                "password": "Owner1234",
                "plan": "Pro",
                "business_type": "Fashion Retail Store",
                "referral_code": "TREX4K2",
            }
        }
    }

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    admin_username: str | None = Field(default=None, min_length=3, max_length=100)
    phone: str | None = None
    address: str | None = None
    plan: str | None = Field(default=None, description="Plan id or plan name.")
    tenant_type: str = "retail"
    business_type: str | None = None
    referral_code: str | None = None
    custom_reward: Decimal | None = Field(default=None, ge=0)


class TenantUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8)
    phone: str | None = None
    address: str | None = None
    plan: str | None = None
    tenant_type: str | None = None
    business_type: str | None = None
    status: TenantStatus | None = None


class TenantStatusRequest(BaseModel):
    status: TenantStatus


class TenantUserItem(BaseModel):
    id: str
    username: str
    email: str
    role: str


class TenantItem(BaseModel):
    id: str
    name: str
    email: str
    phone: str | None
    address: str | None
    plan_id: str | None
    plan_name: str | None
    tenant_type: str
    business_type: str | None
    status: str
    referral_code: str | None
    used_referral_code: str | None
    users: list[TenantUserItem] = Field(default_factory=list)
    created_at: datetime


class TenantListResponse(BaseModel):
    tenants: list[TenantItem]
    total: int
    trace_id: str


class BusinessTypeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    fields: list[FieldDefinition] = Field(default_factory=list)


class BusinessTypeUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    fields: list[FieldDefinition] | None = None


class BusinessTypeItem(BaseModel):
    id: str
    name: str
    description: str | None
    fields: list[FieldDefinition]
    created_at: datetime


class BusinessTypeListResponse(BaseModel):
    business_types: list[BusinessTypeItem]
    trace_id: str


class AdminUserCreateRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)


class AdminUserItem(BaseModel):
    id: str
    username: str
    email: str
    role: str
    status: str
    created_at: datetime


class AdminUserListResponse(BaseModel):
    users: list[AdminUserItem]
    trace_id: str


class ReferralCreateRequest(BaseModel):
    referrer_shop: str = Field(..., min_length=1)
    referred_shop: str = Field(..., min_length=1)
    referral_code: str = Field(..., min_length=1, max_length=20)
    referred_email: str | None = None
    plan_type: str = "Basic"
    reward: Decimal | None = Field(default=None, ge=0)
    status: ReferralStatus = "Pending"


class ReferralStatusRequest(BaseModel):
    id: str
    status: ReferralStatus


class ReferralItem(BaseModel):
    id: str
    referrer_shop: str
    referral_code: str
    referred_shop: str
    referred_email: str | None
    plan_type: str
    reward: float
    status: str
    date_referred: datetime
    date_completed: datetime | None


class ReferralStatsResponse(BaseModel):
    total_referrals: int
    completed: int
    pending: int
    total_rewards: float
    completed_rewards: float
    avg_reward: int


class ReferralListResponse(BaseModel):
    referrals: list[ReferralItem]
    stats: ReferralStatsResponse
    trace_id: str


class ReferralCodeValidationResponse(BaseModel):
    valid: bool
    referrer: str | None
    message: str


class TenantReferralResponse(BaseModel):
    referral_code: str | None
    referrals: list[ReferralItem]
    stats: ReferralStatsResponse
    trace_id: str
