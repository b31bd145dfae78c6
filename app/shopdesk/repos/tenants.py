from sqlalchemy import func, select

from app.shopdesk.db.models import Tenant


class TenantRepository:
    def __init__(self, db):
        self.db = db

    def list_all(
        self,
        *,
        status: str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ):
        stmt = select(Tenant)
        count_stmt = select(func.count()).select_from(Tenant)

        if status:
            normalized_status = status.strip().lower()
            stmt = stmt.where(func.lower(Tenant.status) == normalized_status)
            count_stmt = count_stmt.where(func.lower(Tenant.status) == normalized_status)

        if search:
            pattern = f"%{search.strip()}%"
            search_filter = Tenant.name.ilike(pattern) | Tenant.email.ilike(pattern)
            stmt = stmt.where(search_filter)
            count_stmt = count_stmt.where(search_filter)

        stmt = stmt.order_by(Tenant.created_at.desc())
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        rows = self.db.execute(stmt).scalars().all()
        total = self.db.execute(count_stmt).scalar_one()
        return rows, total

    def get_by_id(self, tenant_id):
        return self.db.get(Tenant, tenant_id)

    def get_by_email(self, email: str):
        stmt = select(Tenant).where(func.lower(Tenant.email) == email.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def get_by_referral_code(self, code: str):
        stmt = select(Tenant).where(Tenant.referral_code == code.strip().upper())
        return self.db.execute(stmt).scalars().first()

    def count_by_plan(self, plan_id) -> int:
        stmt = select(func.count()).select_from(Tenant).where(Tenant.plan_id == plan_id)
        return self.db.execute(stmt).scalar_one()

    def create(self, tenant: Tenant):
        self.db.add(tenant)
        self.db.commit()
        self.db.refresh(tenant)
        return tenant

    def update(self, tenant: Tenant):
        self.db.add(tenant)
        self.db.commit()
        self.db.refresh(tenant)
        return tenant

    def delete(self, tenant: Tenant) -> None:
        self.db.delete(tenant)
        self.db.commit()
