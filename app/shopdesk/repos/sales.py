from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, or_, select

from app.shopdesk.db.models import HeldBill, Sale, SaleItem


@dataclass(frozen=True)
class SaleQueryFilters:
    tenant_id: str
    search: str | None = None
    limit: int = 50
    offset: int = 0


class SaleRepository:
    def __init__(self, db):
        self.db = db

    def list_sales(self, filters: SaleQueryFilters) -> tuple[list[Sale], int]:
        stmt = select(Sale).where(Sale.tenant_id == filters.tenant_id)
        count_stmt = select(func.count()).select_from(Sale).where(Sale.tenant_id == filters.tenant_id)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            search_filter = or_(
                Sale.bill_no.ilike(pattern),
                Sale.customer_name.ilike(pattern),
                Sale.customer_phone.ilike(pattern),
            )
            stmt = stmt.where(search_filter)
            count_stmt = count_stmt.where(search_filter)
        stmt = stmt.order_by(Sale.created_at.desc()).offset(filters.offset).limit(filters.limit)
        rows = self.db.execute(stmt).scalars().all()
        total = self.db.execute(count_stmt).scalar_one()
        return rows, total

    def list_all(self, tenant_id) -> list[Sale]:
        stmt = select(Sale).where(Sale.tenant_id == tenant_id).order_by(Sale.created_at.desc())
        return self.db.execute(stmt).scalars().all()

    def list_between(self, tenant_id, start: datetime, end: datetime) -> list[Sale]:
        stmt = select(Sale).where(
            Sale.tenant_id == tenant_id,
            Sale.created_at >= start,
            Sale.created_at < end,
        )
        return self.db.execute(stmt).scalars().all()

    def get_in_tenant(self, sale_id, tenant_id) -> Sale | None:
        stmt = select(Sale).where(Sale.id == sale_id, Sale.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def get_by_id(self, sale_id) -> Sale | None:
        return self.db.get(Sale, sale_id)

    def bill_no_exists(self, tenant_id, bill_no: str) -> bool:
        stmt = select(Sale.id).where(Sale.tenant_id == tenant_id, Sale.bill_no == bill_no)
        return self.db.execute(stmt).first() is not None

    def add(self, sale: Sale) -> None:
        self.db.add(sale)

    def delete(self, sale: Sale) -> None:
        self.db.delete(sale)
        self.db.commit()

    def clear_tenant(self, tenant_id) -> int:
        sale_ids = select(Sale.id).where(Sale.tenant_id == tenant_id)
        self.db.execute(delete(SaleItem).where(SaleItem.sale_id.in_(sale_ids)))
        result = self.db.execute(delete(Sale).where(Sale.tenant_id == tenant_id))
        self.db.commit()
        return result.rowcount or 0


class HeldBillRepository:
    def __init__(self, db):
        self.db = db

    def list_by_tenant(self, tenant_id) -> list[HeldBill]:
        stmt = select(HeldBill).where(HeldBill.tenant_id == tenant_id).order_by(HeldBill.created_at.asc())
        return self.db.execute(stmt).scalars().all()

    def get_by_code(self, tenant_id, hold_code: str) -> HeldBill | None:
        stmt = select(HeldBill).where(HeldBill.tenant_id == tenant_id, HeldBill.hold_code == hold_code)
        return self.db.execute(stmt).scalars().first()

    def create(self, held_bill: HeldBill) -> HeldBill:
        self.db.add(held_bill)
        self.db.commit()
        self.db.refresh(held_bill)
        return held_bill

    def delete(self, held_bill: HeldBill) -> None:
        self.db.delete(held_bill)
        self.db.commit()
