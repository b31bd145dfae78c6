from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    INVALID_CREDENTIALS = ErrorDefinition(
        "INVALID_CREDENTIALS",
        "Invalid credentials",
        status.HTTP_401_UNAUTHORIZED,
    )
    USER_INACTIVE = ErrorDefinition(
        "USER_INACTIVE",
        "User is inactive or suspended",
        status.HTTP_403_FORBIDDEN,
    )
    TENANT_INACTIVE = ErrorDefinition(
        "TENANT_INACTIVE",
        "Tenant account is not active",
        status.HTTP_403_FORBIDDEN,
    )
    PERMISSION_DENIED = ErrorDefinition(
        "PERMISSION_DENIED",
        "Permission denied",
        status.HTTP_403_FORBIDDEN,
    )
    TENANT_SCOPE_REQUIRED = ErrorDefinition(
        "TENANT_SCOPE_REQUIRED",
        "Tenant scope is required",
        status.HTTP_403_FORBIDDEN,
    )
    FEATURE_NOT_AVAILABLE = ErrorDefinition(
        "FEATURE_NOT_AVAILABLE",
        "Feature not available in your plan",
        status.HTTP_403_FORBIDDEN,
    )
    PRODUCT_LIMIT_EXCEEDED = ErrorDefinition(
        "PRODUCT_LIMIT_EXCEEDED",
        "Product limit reached for your plan",
        status.HTTP_403_FORBIDDEN,
    )
    USER_LIMIT_EXCEEDED = ErrorDefinition(
        "USER_LIMIT_EXCEEDED",
        "User limit reached for your plan",
        status.HTTP_403_FORBIDDEN,
    )
    DELETE_PASSWORD_INVALID = ErrorDefinition(
        "DELETE_PASSWORD_INVALID",
        "Incorrect delete password",
        status.HTTP_403_FORBIDDEN,
    )
    DELETE_PASSWORD_NOT_CONFIGURED = ErrorDefinition(
        "DELETE_PASSWORD_NOT_CONFIGURED",
        "Delete password is not configured for this store",
        status.HTTP_409_CONFLICT,
    )
    NOT_FOUND = ErrorDefinition("NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND)
    HELD_BILL_NOT_FOUND = ErrorDefinition(
        "HELD_BILL_NOT_FOUND",
        "Held bill not found",
        status.HTTP_404_NOT_FOUND,
    )
    CART_EMPTY = ErrorDefinition("CART_EMPTY", "Cart is empty", status.HTTP_400_BAD_REQUEST)
    INSUFFICIENT_STOCK = ErrorDefinition(
        "INSUFFICIENT_STOCK",
        "Insufficient stock",
        status.HTTP_409_CONFLICT,
    )
    BARCODE_EXISTS = ErrorDefinition(
        "BARCODE_EXISTS",
        "Product with this barcode already exists",
        status.HTTP_409_CONFLICT,
    )
    DUPLICATE_RESOURCE = ErrorDefinition(
        "DUPLICATE_RESOURCE",
        "Resource already exists",
        status.HTTP_409_CONFLICT,
    )
    INVALID_CSV = ErrorDefinition("INVALID_CSV", "Invalid CSV file", status.HTTP_400_BAD_REQUEST)
    WHATSAPP_NOT_READY = ErrorDefinition(
        "WHATSAPP_NOT_READY",
        "WhatsApp is not connected",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    WHATSAPP_BRIDGE_UNAVAILABLE = ErrorDefinition(
        "WHATSAPP_BRIDGE_UNAVAILABLE",
        "WhatsApp service is not reachable",
        status.HTTP_502_BAD_GATEWAY,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Database lock timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    IDEMPOTENCY_KEY_REQUIRED = ErrorDefinition(
        "IDEMPOTENCY_KEY_REQUIRED",
        "Idempotency-Key header is required",
        status.HTTP_400_BAD_REQUEST,
    )
    IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD = ErrorDefinition(
        "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD",
        "Idempotency key reused with different payload",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REQUEST_IN_PROGRESS = ErrorDefinition(
        "IDEMPOTENCY_REQUEST_IN_PROGRESS",
        "Idempotency request already in progress",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REPLAY = ErrorDefinition(
        "IDEMPOTENCY_REPLAY",
        "Idempotent replay",
        status.HTTP_200_OK,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None, message: str | None = None):
        self.error = error
        self.details = details
        self.message = message or error.message
        super().__init__(self.message)
