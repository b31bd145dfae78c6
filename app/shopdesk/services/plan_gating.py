"""Plan-driven capability checks.

Every tenant route that belongs to a feature declares it through
``require_feature``; quantity limits (products, users) are enforced by the
``check_*_limit`` helpers at the point where records are created.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from fastapi import Depends

from app.shopdesk.core.config import settings
from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.deps import require_tenant_context
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.products import ProductRepository
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.repos.users import UserRepository

AVAILABLE_FEATURES = {
    "dashboard": {"name": "Dashboard", "category": "Core", "required": True},
    "inventory": {"name": "Inventory Management", "category": "Inventory"},
    "purchases": {"name": "Purchase Orders", "category": "Inventory"},
    "pos": {"name": "Point of Sale (POS)", "category": "Sales"},
    "bills": {"name": "Bills & Invoicing", "category": "Sales"},
    "customers": {"name": "Customer Management", "category": "CRM"},
    "hr": {"name": "HR & Staff Management", "category": "HR"},
    "commission": {"name": "Commission Management", "category": "HR"},
    "reports": {"name": "Analytics & Reports", "category": "Analytics"},
    "expenses": {"name": "Expense Management", "category": "Analytics"},
    "settings": {"name": "General Settings", "category": "Settings"},
    "dropdownSettings": {"name": "Dropdown Settings", "category": "Settings"},
    "whatsapp": {"name": "WhatsApp Integration", "category": "Communication"},
    "referrals": {"name": "Referral System", "category": "Marketing"},
}

DEFAULT_FEATURE_SETS = {
    "basic": ["dashboard", "inventory", "pos", "customers", "settings"],
    "standard": [
        "dashboard",
        "inventory",
        "pos",
        "customers",
        "purchases",
        "bills",
        "hr",
        "commission",
        "reports",
        "expenses",
        "settings",
        "dropdownSettings",
    ],
    "premium": list(AVAILABLE_FEATURES),
}

UNLIMITED = 999999


@dataclass(frozen=True)
class PlanLimits:
    max_products: int
    max_users: int
    current_products: int
    current_users: int
    plan_name: str

    def to_dict(self) -> dict:
        return asdict(self)


def normalize_features(features) -> list[str]:
    """Keep known feature keys in catalog order; dashboard is always on."""
    requested = set(features or []) | {"dashboard"}
    return [key for key in AVAILABLE_FEATURES if key in requested]


def tenant_features(db, tenant_id) -> list[str]:
    tenant = TenantRepository(db).get_by_id(tenant_id)
    if tenant is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Tenant not found")
    if tenant.plan is None:
        return normalize_features(DEFAULT_FEATURE_SETS["basic"])
    return normalize_features(tenant.plan.allowed_features)


def has_feature(db, tenant_id, feature: str) -> bool:
    return feature in tenant_features(db, tenant_id)


def require_feature(feature: str):
    if feature not in AVAILABLE_FEATURES:
        raise ValueError(f"Unknown feature '{feature}'")

    def dependency(
        context: RequestContext = Depends(require_tenant_context),
        db=Depends(get_db),
    ) -> RequestContext:
        if not has_feature(db, context.tenant_id, feature):
            raise AppError(
                ErrorCatalog.FEATURE_NOT_AVAILABLE,
                details={"feature": feature},
                message=f"Access denied: {feature} feature not available in your plan",
            )
        return context

    return dependency


def plan_limits(db, tenant_id) -> PlanLimits:
    tenant = TenantRepository(db).get_by_id(tenant_id)
    if tenant is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Tenant not found")
    current_products = ProductRepository(db).count_by_tenant(tenant.id)
    current_users = UserRepository(db).count_by_tenant(tenant.id)
    plan = tenant.plan
    if plan is None:
        return PlanLimits(
            max_products=UNLIMITED,
            max_users=UNLIMITED,
            current_products=current_products,
            current_users=current_users,
            plan_name="No Plan",
        )
    return PlanLimits(
        max_products=plan.max_products or settings.DEFAULT_PLAN_MAX_PRODUCTS,
        max_users=plan.max_users or settings.DEFAULT_PLAN_MAX_USERS,
        current_products=current_products,
        current_users=current_users,
        plan_name=plan.name,
    )


def check_product_limit(db, tenant_id, *, adding: int = 1) -> PlanLimits:
    limits = plan_limits(db, tenant_id)
    if limits.current_products + adding > limits.max_products:
        raise AppError(
            ErrorCatalog.PRODUCT_LIMIT_EXCEEDED,
            details=limits.to_dict(),
            message=(
                f"Product limit reached! Your {limits.plan_name} plan allows {limits.max_products} products. "
                f"You currently have {limits.current_products} products."
            ),
        )
    return limits


def check_user_limit(db, tenant_id, *, adding: int = 1) -> PlanLimits:
    limits = plan_limits(db, tenant_id)
    if limits.current_users + adding > limits.max_users:
        raise AppError(
            ErrorCatalog.USER_LIMIT_EXCEEDED,
            details=limits.to_dict(),
            message=(
                f"User limit reached! Your {limits.plan_name} plan allows {limits.max_users} users. "
                f"You currently have {limits.current_users} users."
            ),
        )
    return limits
