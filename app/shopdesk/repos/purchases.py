from sqlalchemy import delete, func, select

from app.shopdesk.db.models import Purchase


class PurchaseRepository:
    def __init__(self, db):
        self.db = db

    def list_by_tenant(self, tenant_id, *, status: str | None = None):
        stmt = select(Purchase).where(Purchase.tenant_id == tenant_id)
        if status:
            stmt = stmt.where(func.lower(Purchase.status) == status.strip().lower())
        return self.db.execute(stmt.order_by(Purchase.created_at.desc())).scalars().all()

    def po_number_exists(self, tenant_id, po_number: str) -> bool:
        stmt = select(Purchase.id).where(Purchase.tenant_id == tenant_id, Purchase.po_number == po_number)
        return self.db.execute(stmt).first() is not None

    def get_in_tenant(self, purchase_id, tenant_id):
        stmt = select(Purchase).where(Purchase.id == purchase_id, Purchase.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def add(self, purchase: Purchase) -> None:
        self.db.add(purchase)

    def create(self, purchase: Purchase):
        self.db.add(purchase)
        self.db.commit()
        self.db.refresh(purchase)
        return purchase

    def update(self, purchase: Purchase):
        self.db.add(purchase)
        self.db.commit()
        self.db.refresh(purchase)
        return purchase

    def delete(self, purchase: Purchase) -> None:
        self.db.delete(purchase)
        self.db.commit()

    def clear_tenant(self, tenant_id) -> int:
        result = self.db.execute(delete(Purchase).where(Purchase.tenant_id == tenant_id))
        self.db.commit()
        return result.rowcount or 0

