from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.security import create_user_access_token, verify_password
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.repos.users import UserRepository


class AuthService:
    def __init__(self, db):
        self.repo = UserRepository(db)
        self.tenants = TenantRepository(db)

    def login(self, identifier: str, password: str):
        user = self.repo.get_by_username_or_email(identifier)
        if user is None or not verify_password(password, user.hashed_password):
            raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
        self._ensure_user_active(user)
        return user, create_user_access_token(user)

    def _ensure_user_active(self, user) -> None:
        if not user.is_active or user.status != "active":
            raise AppError(ErrorCatalog.USER_INACTIVE)
        if user.tenant_id is None:
            return
        tenant = self.tenants.get_by_id(user.tenant_id)
        if tenant is None or tenant.status != "active":
            raise AppError(
                ErrorCatalog.TENANT_INACTIVE,
                details={"status": tenant.status if tenant else None},
            )
