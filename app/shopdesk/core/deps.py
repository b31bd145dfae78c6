from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError

from app.shopdesk.core.context import RequestContext, build_request_context, get_request_context
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.scope import require_superadmin, require_tenant_id
from app.shopdesk.core.security import TokenData, decode_token, oauth2_scheme
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.repos.users import UserRepository


def get_current_token_data(token: str = Depends(oauth2_scheme)) -> TokenData:
    try:
        payload = decode_token(token)
        return TokenData(**payload)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def get_current_user(token_data: TokenData = Depends(get_current_token_data), db=Depends(get_db)):
    user_id = token_data.sub
    if not user_id:
        raise AppError(ErrorCatalog.INVALID_TOKEN)

    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    return user


def require_active_user(user=Depends(get_current_user), db=Depends(get_db)):
    if not user.is_active or user.status != "active":
        raise AppError(ErrorCatalog.USER_INACTIVE)
    if user.tenant_id is not None:
        tenant = TenantRepository(db).get_by_id(str(user.tenant_id))
        if tenant is None or tenant.status != "active":
            raise AppError(ErrorCatalog.TENANT_INACTIVE)
    return user


def require_request_context(
    request: Request,
    token_data: TokenData = Depends(get_current_token_data),
) -> RequestContext:
    context = build_request_context(
        user_id=token_data.sub,
        tenant_id=token_data.tenant_id,
        role=token_data.role,
        username=token_data.username,
        trace_id=getattr(request.state, "trace_id", ""),
    )
    request.state.context = context
    return context


def require_tenant_context(
    context: RequestContext = Depends(require_request_context),
    token_data: TokenData = Depends(get_current_token_data),
    current_user=Depends(require_active_user),
) -> RequestContext:
    require_tenant_id(token_data)
    return context


def require_superadmin_context(
    context: RequestContext = Depends(require_request_context),
    token_data: TokenData = Depends(get_current_token_data),
    current_user=Depends(require_active_user),
) -> RequestContext:
    require_superadmin(token_data)
    return context


__all__ = [
    "get_current_token_data",
    "get_current_user",
    "require_active_user",
    "require_request_context",
    "require_tenant_context",
    "require_superadmin_context",
    "get_request_context",
]
