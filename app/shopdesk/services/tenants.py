from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.logging import log_json
from app.shopdesk.core.security import get_password_hash
from app.shopdesk.db.models import (
    Customer,
    DropdownData,
    Employee,
    Expense,
    HeldBill,
    Product,
    Purchase,
    Sale,
    SaleItem,
    Tenant,
    TenantFieldConfig,
    TenantSettings,
    User,
)
from app.shopdesk.repos.business_types import BusinessTypeRepository
from app.shopdesk.repos.plans import PlanRepository
from app.shopdesk.repos.tenant_config import TenantFieldConfigRepository, TenantSettingsRepository
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.repos.users import UserRepository
from app.shopdesk.services.referrals import ReferralService, generate_referral_code

logger = logging.getLogger(__name__)

TENANT_STATUSES = ("active", "inactive", "suspended")
REFERRAL_CODE_ATTEMPTS = 5
# Owned rows, children first.
TENANT_OWNED_MODELS = (
    HeldBill,
    Product,
    Customer,
    Employee,
    Expense,
    Purchase,
    Sale,
    TenantSettings,
    TenantFieldConfig,
    DropdownData,
    User,
)


class TenantService:
    """Tenant lifecycle: provisioning on create, status changes, teardown."""

    def __init__(self, db):
        self.db = db
        self.repo = TenantRepository(db)
        self.users = UserRepository(db)
        self.plans = PlanRepository(db)

    def resolve_plan(self, plan_ref: str | None):
        if not plan_ref:
            return None
        try:
            plan = self.plans.get_by_id(uuid.UUID(str(plan_ref)))
        except ValueError:
            plan = None
        if plan is None:
            plan = self.plans.get_by_name(str(plan_ref))
        if plan is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"plan": plan_ref}, message="Plan not found")
        return plan

    def _unique_referral_code(self, name: str) -> str:
        for _ in range(REFERRAL_CODE_ATTEMPTS):
            code = generate_referral_code(name)
            if self.repo.get_by_referral_code(code) is None:
                return code
        raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, message="Could not allocate a referral code")

    def create(self, data: dict) -> Tenant:
        email = data["email"].strip().lower()
        if self.repo.get_by_email(email) is not None:
            raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, message="Tenant with this email already exists")
        username = (data.get("admin_username") or email).strip()
        if self.users.exists(username=username, email=email):
            raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, message="A user with this email already exists")

        plan = self.resolve_plan(data.get("plan"))
        business_type = data.get("business_type")
        if business_type in ("", "none"):
            business_type = None
        used_code = (data.get("referral_code") or "").strip().upper() or None
        referrer = self.repo.get_by_referral_code(used_code) if used_code else None
        if referrer is None:
            used_code = None

        tenant = Tenant(
            name=data["name"].strip(),
            email=email,
            phone=data.get("phone"),
            address=data.get("address"),
            plan_id=plan.id if plan else None,
            tenant_type=data.get("tenant_type") or "retail",
            business_type=business_type,
            status="active",
            referral_code=self._unique_referral_code(data["name"]),
            used_referral_code=used_code,
        )
        try:
            self.db.add(tenant)
            self.db.flush()
            self.db.add(
                User(
                    tenant_id=tenant.id,
                    username=username,
                    email=email,
                    hashed_password=get_password_hash(data["password"]),
                    role="ADMIN",
                    status="active",
                    is_active=True,
                )
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, message="Tenant already exists") from exc
        self.db.refresh(tenant)

        TenantSettingsRepository(self.db).get_or_create(tenant.id, store_name=tenant.name)
        self._provision_fields(tenant)
        if used_code:
            ReferralService(self.db).create(
                referrer_shop=referrer.name,
                referred_shop=tenant.name,
                referred_email=tenant.email,
                referral_code=used_code,
                plan_type=plan.name if plan else "Basic",
                reward=data.get("custom_reward"),
                status="Completed",
            )
        log_json(logger, {"event": "tenant_provisioned", "tenant_id": str(tenant.id), "plan": plan.name if plan else None})
        return tenant

    def _provision_fields(self, tenant: Tenant) -> None:
        if not tenant.business_type:
            return
        business_type = BusinessTypeRepository(self.db).get_by_name(tenant.business_type)
        if business_type is None:
            logger.warning("Unknown business type for tenant", extra={"business_type": tenant.business_type})
            return
        TenantFieldConfigRepository(self.db).upsert(
            tenant.id,
            business_type=business_type.name,
            fields=list(business_type.fields or []),
        )

    def update(self, tenant: Tenant, changes: dict) -> Tenant:
        if changes.get("email") and changes["email"].strip().lower() != tenant.email:
            other = self.repo.get_by_email(changes["email"])
            if other is not None and other.id != tenant.id:
                raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, message="Tenant with this email already exists")
            tenant.email = changes["email"].strip().lower()
        for key in ("name", "phone", "address", "tenant_type"):
            if changes.get(key) is not None:
                setattr(tenant, key, changes[key])
        if "business_type" in changes and changes["business_type"] is not None:
            tenant.business_type = changes["business_type"] if changes["business_type"] not in ("", "none") else None
        if changes.get("plan") is not None:
            plan = self.resolve_plan(changes["plan"])
            tenant.plan_id = plan.id if plan else None
        if changes.get("status") is not None:
            self._check_status(changes["status"])
            tenant.status = changes["status"]
        if changes.get("password"):
            admin = next((user for user in self.users.list_by_tenant(tenant.id) if user.role == "ADMIN"), None)
            if admin is not None:
                admin.hashed_password = get_password_hash(changes["password"])
                admin.updated_at = datetime.utcnow()
                self.db.add(admin)
        tenant.updated_at = datetime.utcnow()
        return self.repo.update(tenant)

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in TENANT_STATUSES:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"status": status}, message="Invalid status")

    def set_status(self, tenant: Tenant, status: str) -> Tenant:
        self._check_status(status)
        tenant.status = status
        tenant.updated_at = datetime.utcnow()
        return self.repo.update(tenant)

    def delete(self, tenant: Tenant) -> None:
        sale_ids = self.db.execute(select(Sale.id).where(Sale.tenant_id == tenant.id)).scalars().all()
        if sale_ids:
            self.db.execute(delete(SaleItem).where(SaleItem.sale_id.in_(sale_ids)))
        for model in TENANT_OWNED_MODELS:
            self.db.execute(delete(model).where(model.tenant_id == tenant.id))
        self.db.delete(tenant)
        self.db.commit()
        log_json(logger, {"event": "tenant_deleted", "tenant_id": str(tenant.id)})
