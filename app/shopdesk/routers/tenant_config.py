from fastapi import APIRouter, Depends

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.deps import require_tenant_context
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.security import verify_password
from app.shopdesk.db.models import TenantSettings
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.tenant_config import (
    DropdownDataRepository,
    TenantFieldConfigRepository,
    TenantSettingsRepository,
)
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.schemas.tenant_config import (
    DropdownDataPayload,
    PlanLimitsResponse,
    StoreSettingsResponse,
    StoreSettingsUpdateRequest,
    TenantFeaturesResponse,
    TenantFieldsRequest,
    TenantFieldsResponse,
)
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.cart import money
from app.shopdesk.services.delete_guard import hash_delete_password
from app.shopdesk.services.plan_gating import plan_limits, require_feature, tenant_features

router = APIRouter()

DROPDOWN_KEYS = ("categories", "sizes", "colors", "materials", "brands", "suppliers")


def _settings_response(settings_row: TenantSettings, trace_id: str) -> StoreSettingsResponse:
    return StoreSettingsResponse(
        store_name=settings_row.store_name,
        address=settings_row.address,
        phone=settings_row.phone,
        email=settings_row.email,
        gst=settings_row.gst,
        tax_rate=settings_row.tax_rate,
        terms=settings_row.terms,
        bill_prefix=settings_row.bill_prefix,
        bill_counter=settings_row.bill_counter,
        whatsapp_message=settings_row.whatsapp_message,
        discount_mode=settings_row.discount_mode,
        bill_format=settings_row.bill_format,
        delete_password_configured=bool(settings_row.delete_password_hash),
        trace_id=trace_id,
    )


def _store_name(db, tenant_id) -> str | None:
    tenant = TenantRepository(db).get_by_id(tenant_id)
    return tenant.name if tenant is not None else None


@router.get("/api/settings", response_model=StoreSettingsResponse)
def get_settings(
    context: RequestContext = Depends(require_tenant_context),
    db=Depends(get_db),
):
    settings_row = TenantSettingsRepository(db).get_or_create(
        context.tenant_id, store_name=_store_name(db, context.tenant_id)
    )
    return _settings_response(settings_row, context.trace_id)


@router.put("/api/settings", response_model=StoreSettingsResponse)
def update_settings(
    payload: StoreSettingsUpdateRequest,
    context: RequestContext = Depends(require_feature("settings")),
    db=Depends(get_db),
):
    repo = TenantSettingsRepository(db)
    settings_row = repo.get_or_create(context.tenant_id, store_name=_store_name(db, context.tenant_id))
    changes = payload.model_dump(exclude_unset=True)
    new_password = changes.pop("delete_password", None)
    current_password = changes.pop("current_delete_password", None)

    password_changed = False
    if new_password:
        if settings_row.delete_password_hash and not (
            current_password and verify_password(current_password, settings_row.delete_password_hash)
        ):
            raise AppError(
                ErrorCatalog.DELETE_PASSWORD_INVALID,
                message="Current delete password is required to change it",
            )
        settings_row.delete_password_hash = hash_delete_password(new_password)
        password_changed = True

    for key, value in changes.items():
        if value is None:
            continue
        if key == "tax_rate":
            value = money(value)
        setattr(settings_row, key, value)
    settings_row = repo.update(settings_row)

    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="settings.update",
            entity_type="tenant_settings",
            entity_id=str(settings_row.id),
            after={key: str(value) for key, value in changes.items() if value is not None},
            metadata={"delete_password_changed": password_changed},
        )
    )
    return _settings_response(settings_row, context.trace_id)


@router.get("/api/plan-limits", response_model=PlanLimitsResponse)
def get_plan_limits(
    context: RequestContext = Depends(require_tenant_context),
    db=Depends(get_db),
):
    return PlanLimitsResponse(**plan_limits(db, context.tenant_id).to_dict(), trace_id=context.trace_id)


@router.get("/api/dropdown-data", response_model=DropdownDataPayload)
def get_dropdown_data(
    context: RequestContext = Depends(require_tenant_context),
    db=Depends(get_db),
):
    data = DropdownDataRepository(db).get_or_create(context.tenant_id)
    return DropdownDataPayload(**{key: getattr(data, key) or [] for key in DROPDOWN_KEYS})


@router.put("/api/dropdown-data", response_model=DropdownDataPayload)
def update_dropdown_data(
    payload: DropdownDataPayload,
    context: RequestContext = Depends(require_feature("dropdownSettings")),
    db=Depends(get_db),
):
    repo = DropdownDataRepository(db)
    data = repo.get_or_create(context.tenant_id)
    for key in payload.model_fields_set:
        # Keep first occurrence order, drop blanks.
        values = [value.strip() for value in getattr(payload, key) if value and value.strip()]
        setattr(data, key, list(dict.fromkeys(values)))
    data = repo.update(data)
    return DropdownDataPayload(**{key: getattr(data, key) or [] for key in DROPDOWN_KEYS})


@router.get("/api/tenant-fields", response_model=TenantFieldsResponse)
def get_tenant_fields(
    context: RequestContext = Depends(require_tenant_context),
    db=Depends(get_db),
):
    config = TenantFieldConfigRepository(db).get(context.tenant_id)
    if config is None:
        return TenantFieldsResponse(business_type=None, fields=[], trace_id=context.trace_id)
    return TenantFieldsResponse(
        business_type=config.business_type,
        fields=config.fields or [],
        trace_id=context.trace_id,
    )


@router.post("/api/tenant-fields", response_model=TenantFieldsResponse)
def save_tenant_fields(
    payload: TenantFieldsRequest,
    context: RequestContext = Depends(require_feature("settings")),
    db=Depends(get_db),
):
    names = [field.name for field in payload.fields]
    if len(names) != len(set(names)):
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"fields": names}, message="Field names must be unique")
    config = TenantFieldConfigRepository(db).upsert(
        context.tenant_id,
        business_type=payload.business_type,
        fields=[field.model_dump() for field in payload.fields],
    )
    return TenantFieldsResponse(business_type=config.business_type, fields=config.fields, trace_id=context.trace_id)


@router.get("/api/tenant-features", response_model=TenantFeaturesResponse)
def get_tenant_features(
    context: RequestContext = Depends(require_tenant_context),
    db=Depends(get_db),
):
    tenant = TenantRepository(db).get_by_id(context.tenant_id)
    plan_name = tenant.plan.name if tenant is not None and tenant.plan is not None else "No Plan"
    return TenantFeaturesResponse(
        plan_name=plan_name,
        features=tenant_features(db, context.tenant_id),
        trace_id=context.trace_id,
    )
