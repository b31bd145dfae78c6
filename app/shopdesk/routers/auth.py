from fastapi import APIRouter, Depends, Request

from app.shopdesk.core.deps import require_active_user
from app.shopdesk.core.error_catalog import AppError
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.repos.users import UserRepository
from app.shopdesk.schemas.auth import LoginRequest, MeResponse, TokenResponse
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.auth import AuthService
from app.shopdesk.services.plan_gating import tenant_features

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login (JSON)",
    description="Login with username or email; the token carries the tenant scope and role.",
)
async def login(request: Request, payload: LoginRequest, db=Depends(get_db)):
    trace_id = getattr(request.state, "trace_id", "")
    try:
        user, token = AuthService(db).login(payload.username_or_email, payload.password)
    except AppError as exc:
        candidate = UserRepository(db).get_by_username_or_email(payload.username_or_email)
        if candidate is not None:
            AuditService(db).record_event(
                AuditEventPayload(
                    tenant_id=str(candidate.tenant_id) if candidate.tenant_id else None,
                    user_id=str(candidate.id),
                    trace_id=trace_id or None,
                    actor=payload.username_or_email,
                    action="auth.login.failed",
                    entity_type="user",
                    entity_id=str(candidate.id),
                    metadata={"error_code": exc.error.code},
                    result="failure",
                )
            )
        raise

    return TokenResponse(
        access_token=token,
        role=user.role,
        tenant_id=str(user.tenant_id) if user.tenant_id else None,
        trace_id=trace_id,
    )


@router.get("/me", response_model=MeResponse)
def me(request: Request, current_user=Depends(require_active_user), db=Depends(get_db)):
    tenant_name = None
    features: list[str] = []
    if current_user.tenant_id is not None:
        tenant = TenantRepository(db).get_by_id(current_user.tenant_id)
        tenant_name = tenant.name if tenant else None
        features = tenant_features(db, current_user.tenant_id)
    return MeResponse(
        id=str(current_user.id),
        username=current_user.username,
        email=current_user.email,
        role=current_user.role,
        tenant_id=str(current_user.tenant_id) if current_user.tenant_id else None,
        tenant_name=tenant_name,
        features=features,
        trace_id=getattr(request.state, "trace_id", ""),
    )
