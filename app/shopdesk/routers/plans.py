from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy import update

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.deps import get_current_token_data, require_active_user, require_superadmin_context
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.scope import is_superadmin
from app.shopdesk.core.security import TokenData
from app.shopdesk.db.models import Plan, Tenant
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.plans import PlanRepository
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.schemas.admin import PlanCreateRequest, PlanItem, PlanListResponse, PlanUpdateRequest
from app.shopdesk.schemas.common import ActionResponse
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.cart import money
from app.shopdesk.services.plan_gating import normalize_features

router = APIRouter()


def _plan_item(db, plan: Plan) -> PlanItem:
    return PlanItem(
        id=str(plan.id),
        name=plan.name,
        price=plan.price,
        description=plan.description,
        features=plan.features or [],
        allowed_features=normalize_features(plan.allowed_features),
        max_products=plan.max_products,
        max_users=plan.max_users,
        status=plan.status,
        subscribers=TenantRepository(db).count_by_plan(plan.id),
        created_at=plan.created_at,
    )


def _get_plan(db, plan_id: UUID) -> Plan:
    plan = PlanRepository(db).get_by_id(plan_id)
    if plan is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"plan_id": str(plan_id)}, message="Plan not found")
    return plan


def _check_unique_name(db, name: str, plan_id=None) -> None:
    other = PlanRepository(db).get_by_name(name)
    if other is not None and other.id != plan_id:
        raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, details={"name": name}, message="Plan name already exists")


def _audit(db, context: RequestContext, action: str, plan: Plan) -> None:
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=None,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action=action,
            entity_type="plan",
            entity_id=str(plan.id),
            after={"name": plan.name, "status": plan.status},
        )
    )


@router.get("/api/plans", response_model=PlanListResponse)
def list_plans(
    request: Request,
    token_data: TokenData = Depends(get_current_token_data),
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    """All plans for super-admins; tenant users only see active ones."""
    rows = PlanRepository(db).list_all(active_only=not is_superadmin(token_data.role))
    return PlanListResponse(
        plans=[_plan_item(db, plan) for plan in rows],
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.post("/api/plans", response_model=PlanItem, status_code=201)
def create_plan(
    payload: PlanCreateRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    _check_unique_name(db, payload.name)
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    data["price"] = money(data["price"])
    data["allowed_features"] = normalize_features(data["allowed_features"])
    plan = PlanRepository(db).create(Plan(**data))
    _audit(db, context, "plan.create", plan)
    return _plan_item(db, plan)


@router.get("/api/plans/{plan_id}", response_model=PlanItem)
def get_plan(
    plan_id: UUID,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    return _plan_item(db, _get_plan(db, plan_id))


@router.put("/api/plans/{plan_id}", response_model=PlanItem)
def update_plan(
    plan_id: UUID,
    payload: PlanUpdateRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    plan = _get_plan(db, plan_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name"):
        _check_unique_name(db, changes["name"], plan.id)
        changes["name"] = changes["name"].strip()
    for key, value in changes.items():
        if value is None:
            continue
        if key == "price":
            value = money(value)
        elif key == "allowed_features":
            value = normalize_features(value)
        setattr(plan, key, value)
    plan.updated_at = datetime.utcnow()
    plan = PlanRepository(db).update(plan)
    _audit(db, context, "plan.update", plan)
    return _plan_item(db, plan)


@router.delete("/api/plans/{plan_id}", response_model=ActionResponse)
def delete_plan(
    plan_id: UUID,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    plan = _get_plan(db, plan_id)
    # Subscribers fall back to the default feature set.
    detached = db.execute(update(Tenant).where(Tenant.plan_id == plan.id).values(plan_id=None)).rowcount
    _audit(db, context, "plan.delete", plan)
    PlanRepository(db).delete(plan)
    return ActionResponse(message="Plan deleted", count=detached, trace_id=context.trace_id)
