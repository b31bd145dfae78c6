from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.shopdesk.core.context import build_request_context
from app.shopdesk.core.security import decode_token


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Expose token claims on request.state for logging; authorization happens in deps."""

    async def dispatch(self, request: Request, call_next):
        request.state.tenant_id = None
        request.state.user_id = None
        request.state.role = None
        username = None

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1]
            try:
                payload = decode_token(token)
            except JWTError:
                payload = {}
            request.state.tenant_id = payload.get("tenant_id")
            request.state.user_id = payload.get("sub")
            request.state.role = payload.get("role")
            username = payload.get("username")

        request.state.context = build_request_context(
            user_id=request.state.user_id,
            tenant_id=request.state.tenant_id,
            role=request.state.role,
            username=username,
            trace_id=getattr(request.state, "trace_id", ""),
        )

        return await call_next(request)
