from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.deps import require_superadmin_context
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import Tenant
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.repos.users import UserRepository
from app.shopdesk.schemas.admin import (
    TenantCreateRequest,
    TenantItem,
    TenantListResponse,
    TenantStatusRequest,
    TenantUpdateRequest,
    TenantUserItem,
)
from app.shopdesk.schemas.common import ActionResponse
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.tenants import TenantService

router = APIRouter()


def _tenant_item(db, tenant: Tenant, *, with_users: bool = False) -> TenantItem:
    users = []
    if with_users:
        users = [
            TenantUserItem(id=str(user.id), username=user.username, email=user.email, role=user.role)
            for user in UserRepository(db).list_by_tenant(tenant.id)
        ]
    return TenantItem(
        id=str(tenant.id),
        name=tenant.name,
        email=tenant.email,
        phone=tenant.phone,
        address=tenant.address,
        plan_id=str(tenant.plan_id) if tenant.plan_id else None,
        plan_name=tenant.plan.name if tenant.plan is not None else None,
        tenant_type=tenant.tenant_type,
        business_type=tenant.business_type,
        status=tenant.status,
        referral_code=tenant.referral_code,
        used_referral_code=tenant.used_referral_code,
        users=users,
        created_at=tenant.created_at,
    )


def _get_tenant(db, tenant_id: UUID) -> Tenant:
    tenant = TenantRepository(db).get_by_id(tenant_id)
    if tenant is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"tenant_id": str(tenant_id)}, message="Tenant not found")
    return tenant


def _audit(db, context: RequestContext, action: str, tenant: Tenant, before=None, after=None) -> None:
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=str(tenant.id),
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action=action,
            entity_type="tenant",
            entity_id=str(tenant.id),
            before=before,
            after=after,
        )
    )


@router.get("/api/tenants", response_model=TenantListResponse)
def list_tenants(
    status: str | None = Query(default=None),
    search: str | None = Query(default=None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    rows, total = TenantRepository(db).list_all(status=status, search=search, limit=limit, offset=offset)
    return TenantListResponse(
        tenants=[_tenant_item(db, tenant) for tenant in rows],
        total=total,
        trace_id=context.trace_id,
    )


@router.post("/api/tenants", response_model=TenantItem, status_code=201)
def create_tenant(
    payload: TenantCreateRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    tenant = TenantService(db).create(payload.model_dump())
    _audit(db, context, "tenant.create", tenant, after={"name": tenant.name, "email": tenant.email})
    return _tenant_item(db, tenant, with_users=True)


@router.get("/api/tenants/{tenant_id}", response_model=TenantItem)
def get_tenant(
    tenant_id: UUID,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    return _tenant_item(db, _get_tenant(db, tenant_id), with_users=True)


@router.put("/api/tenants/{tenant_id}", response_model=TenantItem)
def update_tenant(
    tenant_id: UUID,
    payload: TenantUpdateRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    tenant = _get_tenant(db, tenant_id)
    changes = payload.model_dump(exclude_unset=True)
    tenant = TenantService(db).update(tenant, changes)
    _audit(db, context, "tenant.update", tenant, after={key: str(value) for key, value in changes.items() if key != "password"})
    return _tenant_item(db, tenant, with_users=True)


@router.patch("/api/tenants/{tenant_id}/status", response_model=TenantItem)
def set_tenant_status(
    tenant_id: UUID,
    payload: TenantStatusRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    tenant = _get_tenant(db, tenant_id)
    before = {"status": tenant.status}
    tenant = TenantService(db).set_status(tenant, payload.status)
    _audit(db, context, "tenant.status", tenant, before=before, after={"status": tenant.status})
    return _tenant_item(db, tenant)


@router.delete("/api/tenants/{tenant_id}", response_model=ActionResponse)
def delete_tenant(
    tenant_id: UUID,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    tenant = _get_tenant(db, tenant_id)
    _audit(db, context, "tenant.delete", tenant, before={"name": tenant.name, "email": tenant.email})
    TenantService(db).delete(tenant)
    return ActionResponse(message="Tenant deleted", count=1, trace_id=context.trace_id)
