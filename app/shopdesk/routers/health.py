from fastapi import APIRouter, Depends, Request
from sqlalchemy import text

from app.shopdesk.core.config import settings
from app.shopdesk.core.error_catalog import ErrorCatalog
from app.shopdesk.core.errors import error_response
from app.shopdesk.db.session import get_db

router = APIRouter()


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


@router.get("/health")
async def health(request: Request):
    poller = getattr(request.app.state, "whatsapp_poller", None)
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "whatsapp_poller": "running" if poller is not None and poller.running else "stopped",
        "trace_id": _trace_id(request),
    }


@router.get("/ready")
async def ready(request: Request, db=Depends(get_db)):
    # Querying a migrated table also catches a database that was never upgraded.
    try:
        db.execute(text("SELECT 1 FROM tenants LIMIT 1"))
    except Exception as exc:
        return error_response(
            code=ErrorCatalog.DB_UNAVAILABLE.code,
            message=ErrorCatalog.DB_UNAVAILABLE.message,
            details=str(exc),
            trace_id=_trace_id(request),
            status_code=ErrorCatalog.DB_UNAVAILABLE.status_code,
        )
    return {"status": "ready", "trace_id": _trace_id(request)}
