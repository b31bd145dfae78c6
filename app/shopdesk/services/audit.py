import logging
from dataclasses import dataclass
from datetime import datetime

from app.shopdesk.db.models import AuditEvent
from app.shopdesk.repos.audit import AuditRepository

logger = logging.getLogger(__name__)


@dataclass
class AuditEventPayload:
    tenant_id: str | None
    user_id: str | None
    trace_id: str | None
    actor: str
    action: str
    entity_type: str
    entity_id: str | None = None
    before: dict | None = None
    after: dict | None = None
    metadata: dict | None = None
    result: str = "success"


class AuditService:
    """Best-effort audit logging.

    Failures are logged and swallowed so they never break the request flow.
    """

    def __init__(self, db):
        self.repo = AuditRepository(db)

    def record_event(self, payload: AuditEventPayload) -> None:
        try:
            event = AuditEvent(
                tenant_id=str(payload.tenant_id) if payload.tenant_id else "platform",
                user_id=str(payload.user_id) if payload.user_id else None,
                trace_id=payload.trace_id,
                actor=payload.actor,
                action=payload.action,
                entity_type=payload.entity_type,
                entity_id=str(payload.entity_id) if payload.entity_id else None,
                before_payload=payload.before,
                after_payload=payload.after,
                event_metadata=payload.metadata,
                result=payload.result,
                created_at=datetime.utcnow(),
            )
            self.repo.create(event)
        except Exception:
            self.repo.db.rollback()
            logger.exception(
                "Failed to write audit event",
                extra={"action": payload.action, "trace_id": payload.trace_id, "tenant_id": payload.tenant_id},
            )
