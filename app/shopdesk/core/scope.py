from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.security import TokenData


SUPERADMIN_ROLES = {"SUPERADMIN", "PLATFORM_ADMIN"}
TENANT_ADMIN_ROLES = {"ADMIN"}


def _normalize_role(role: str | None) -> str:
    return (role or "").upper()


def is_superadmin(role: str | None) -> bool:
    return _normalize_role(role) in SUPERADMIN_ROLES


def is_tenant_admin(role: str | None) -> bool:
    return _normalize_role(role) in TENANT_ADMIN_ROLES


def require_tenant_id(token_data: TokenData) -> str:
    if not token_data.tenant_id:
        raise AppError(ErrorCatalog.TENANT_SCOPE_REQUIRED)
    return token_data.tenant_id


def require_superadmin(token_data: TokenData) -> None:
    if not is_superadmin(token_data.role):
        raise AppError(ErrorCatalog.PERMISSION_DENIED)
