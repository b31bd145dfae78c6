from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.security import get_password_hash, verify_password
from app.shopdesk.repos.tenant_config import TenantSettingsRepository

DELETE_PASSWORD_HEADER = "X-Delete-Password"
MIN_DELETE_PASSWORD_LENGTH = 4


def hash_delete_password(password: str) -> str:
    if len(password or "") < MIN_DELETE_PASSWORD_LENGTH:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"field": "delete_password", "min_length": MIN_DELETE_PASSWORD_LENGTH},
            message="Delete password is too short",
        )
    return get_password_hash(password)


def verify_delete_password(db, tenant_id, password: str | None) -> None:
    """Gate destructive tenant operations on the store's delete password."""
    settings_row = TenantSettingsRepository(db).get(tenant_id)
    if settings_row is None or not settings_row.delete_password_hash:
        raise AppError(ErrorCatalog.DELETE_PASSWORD_NOT_CONFIGURED)
    if not password or not verify_password(password, settings_row.delete_password_hash):
        raise AppError(ErrorCatalog.DELETE_PASSWORD_INVALID)
