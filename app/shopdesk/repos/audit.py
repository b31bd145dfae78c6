from sqlalchemy import select

from app.shopdesk.db.models import AuditEvent


class AuditRepository:
    def __init__(self, db):
        self.db = db

    def create(self, event: AuditEvent) -> AuditEvent:
        self.db.add(event)
        self.db.commit()
        return event

    def list_for_tenant(self, tenant_id: str, *, action: str | None = None, limit: int = 100) -> list[AuditEvent]:
        stmt = select(AuditEvent).where(AuditEvent.tenant_id == tenant_id)
        if action:
            stmt = stmt.where(AuditEvent.action == action)
        stmt = stmt.order_by(AuditEvent.created_at.desc()).limit(limit)
        return self.db.execute(stmt).scalars().all()
