from dataclasses import asdict
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.deps import require_superadmin_context
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.security import get_password_hash
from app.shopdesk.db.models import BusinessType, Referral, User
from app.shopdesk.db.seed import seed_business_types
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.business_types import BusinessTypeRepository
from app.shopdesk.repos.referrals import ReferralRepository
from app.shopdesk.repos.users import UserRepository
from app.shopdesk.schemas.admin import (
    AdminUserCreateRequest,
    AdminUserItem,
    AdminUserListResponse,
    BusinessTypeItem,
    BusinessTypeListResponse,
    BusinessTypeRequest,
    BusinessTypeUpdateRequest,
    ReferralCodeValidationResponse,
    ReferralCreateRequest,
    ReferralItem,
    ReferralListResponse,
    ReferralStatsResponse,
    ReferralStatusRequest,
)
from app.shopdesk.schemas.common import ActionResponse
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.referrals import ReferralService, referral_stats

router = APIRouter()


def _parse_id(value: str, label: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"id": value}, message=f"{label} not found") from exc


def _audit(db, context: RequestContext, action: str, entity_type: str, entity_id, **changes) -> None:
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=None,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            before=changes.get("before"),
            after=changes.get("after"),
        )
    )


# Business types


def _business_type_item(business_type: BusinessType) -> BusinessTypeItem:
    return BusinessTypeItem(
        id=str(business_type.id),
        name=business_type.name,
        description=business_type.description,
        fields=business_type.fields or [],
        created_at=business_type.created_at,
    )


def _get_business_type(db, business_type_id: UUID) -> BusinessType:
    business_type = BusinessTypeRepository(db).get_by_id(business_type_id)
    if business_type is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Business type not found")
    return business_type


@router.get("/api/business-types", response_model=BusinessTypeListResponse)
def list_business_types(
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    rows = BusinessTypeRepository(db).list_all()
    return BusinessTypeListResponse(
        business_types=[_business_type_item(row) for row in rows],
        trace_id=context.trace_id,
    )


@router.post("/api/business-types", response_model=BusinessTypeItem, status_code=201)
def create_business_type(
    payload: BusinessTypeRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    repo = BusinessTypeRepository(db)
    if repo.get_by_name(payload.name) is not None:
        raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, details={"name": payload.name}, message="Business type already exists")
    business_type = repo.create(
        BusinessType(
            name=payload.name.strip(),
            description=payload.description,
            fields=[field.model_dump() for field in payload.fields],
        )
    )
    _audit(db, context, "business_type.create", "business_type", business_type.id, after={"name": business_type.name})
    return _business_type_item(business_type)


@router.post("/api/init-business-types", response_model=ActionResponse)
def init_business_types(
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    created = seed_business_types(db)
    db.commit()
    return ActionResponse(message=f"Initialized {created} business types", count=created, trace_id=context.trace_id)


@router.get("/api/business-types/{business_type_id}", response_model=BusinessTypeItem)
def get_business_type(
    business_type_id: UUID,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    return _business_type_item(_get_business_type(db, business_type_id))


@router.put("/api/business-types/{business_type_id}", response_model=BusinessTypeItem)
def update_business_type(
    business_type_id: UUID,
    payload: BusinessTypeUpdateRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    repo = BusinessTypeRepository(db)
    business_type = _get_business_type(db, business_type_id)
    if payload.name is not None:
        other = repo.get_by_name(payload.name)
        if other is not None and other.id != business_type.id:
            raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, details={"name": payload.name}, message="Business type already exists")
        business_type.name = payload.name.strip()
    if payload.description is not None:
        business_type.description = payload.description
    if payload.fields is not None:
        business_type.fields = [field.model_dump() for field in payload.fields]
    business_type.updated_at = datetime.utcnow()
    business_type = repo.update(business_type)
    _audit(db, context, "business_type.update", "business_type", business_type.id, after={"name": business_type.name})
    return _business_type_item(business_type)


@router.delete("/api/business-types/{business_type_id}", response_model=ActionResponse)
def delete_business_type(
    business_type_id: UUID,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    business_type = _get_business_type(db, business_type_id)
    _audit(db, context, "business_type.delete", "business_type", business_type.id, before={"name": business_type.name})
    BusinessTypeRepository(db).delete(business_type)
    return ActionResponse(message="Business type deleted", count=1, trace_id=context.trace_id)


# Platform administrators


def _admin_user_item(user: User) -> AdminUserItem:
    return AdminUserItem(
        id=str(user.id),
        username=user.username,
        email=user.email,
        role=user.role,
        status=user.status,
        created_at=user.created_at,
    )


@router.get("/api/super-admin/users", response_model=AdminUserListResponse)
def list_admin_users(
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    rows = UserRepository(db).list_superadmins()
    return AdminUserListResponse(users=[_admin_user_item(user) for user in rows], trace_id=context.trace_id)


@router.post("/api/super-admin/users", response_model=AdminUserItem, status_code=201)
def create_admin_user(
    payload: AdminUserCreateRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    repo = UserRepository(db)
    if repo.exists(username=payload.username, email=payload.email):
        raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, message="User with this username or email already exists")
    user = repo.create(
        User(
            tenant_id=None,
            username=payload.username.strip(),
            email=payload.email.lower(),
            hashed_password=get_password_hash(payload.password),
            role="SUPERADMIN",
            status="active",
            is_active=True,
        )
    )
    _audit(db, context, "admin_user.create", "user", user.id, after={"username": user.username})
    return _admin_user_item(user)


@router.delete("/api/super-admin/users", response_model=ActionResponse)
def delete_admin_user(
    user_id: str = Query(..., alias="id", description="Administrator id"),
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    user_id = _parse_id(user_id, "User")
    repo = UserRepository(db)
    user = repo.get_by_id(user_id)
    if user is None or user.tenant_id is not None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="User not found")
    if str(user.id) == str(context.user_id):
        raise AppError(ErrorCatalog.VALIDATION_ERROR, message="You cannot delete your own account")
    _audit(db, context, "admin_user.delete", "user", user.id, before={"username": user.username})
    repo.delete(user)
    return ActionResponse(message="User deleted", count=1, trace_id=context.trace_id)


# Referrals


def referral_item(referral: Referral) -> ReferralItem:
    return ReferralItem(
        id=str(referral.id),
        referrer_shop=referral.referrer_shop,
        referral_code=referral.referral_code,
        referred_shop=referral.referred_shop,
        referred_email=referral.referred_email,
        plan_type=referral.plan_type,
        reward=referral.reward,
        status=referral.status,
        date_referred=referral.date_referred,
        date_completed=referral.date_completed,
    )


@router.get("/api/super-admin/referrals", response_model=ReferralListResponse)
def list_referrals(
    status: str | None = Query(default=None),
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    rows = ReferralRepository(db).list_all(status=status)
    stats = referral_stats(rows)
    return ReferralListResponse(
        referrals=[referral_item(row) for row in rows],
        stats=ReferralStatsResponse(**asdict(stats)),
        trace_id=context.trace_id,
    )


@router.post("/api/super-admin/referrals", response_model=ReferralItem, status_code=201)
def create_referral(
    payload: ReferralCreateRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    referral = ReferralService(db).create(**payload.model_dump())
    _audit(db, context, "referral.create", "referral", referral.id, after={"referral_code": referral.referral_code})
    return referral_item(referral)


@router.put("/api/super-admin/referrals", response_model=ReferralItem)
def update_referral_status(
    payload: ReferralStatusRequest,
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    referral_id = _parse_id(payload.id, "Referral")
    service = ReferralService(db)
    existing = service.repo.get_by_id(referral_id)
    before = {"status": existing.status} if existing is not None else None
    referral = service.set_status(referral_id, payload.status)
    _audit(db, context, "referral.status", "referral", referral.id, before=before, after={"status": referral.status})
    return referral_item(referral)


@router.delete("/api/super-admin/referrals", response_model=ActionResponse)
def delete_referral(
    referral_id: str = Query(..., alias="id", description="Referral id"),
    context: RequestContext = Depends(require_superadmin_context),
    db=Depends(get_db),
):
    repo = ReferralRepository(db)
    referral = repo.get_by_id(_parse_id(referral_id, "Referral"))
    if referral is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Referral not found")
    _audit(db, context, "referral.delete", "referral", referral.id, before={"referral_code": referral.referral_code})
    repo.delete(referral)
    return ActionResponse(message="Referral deleted", count=1, trace_id=context.trace_id)


@router.get("/api/referral-codes", response_model=ReferralCodeValidationResponse)
def validate_referral_code(
    code: str | None = Query(default=None),
    db=Depends(get_db),
):
    # Used by the signup form before an account exists.
    return ReferralCodeValidationResponse(**ReferralService(db).validate_code(code))
