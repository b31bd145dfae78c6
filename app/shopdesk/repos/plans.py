from sqlalchemy import func, select

from app.shopdesk.db.models import Plan


class PlanRepository:
    def __init__(self, db):
        self.db = db

    def list_all(self, *, active_only: bool = False):
        stmt = select(Plan)
        if active_only:
            stmt = stmt.where(Plan.status == "active")
        return self.db.execute(stmt.order_by(Plan.price.asc(), Plan.name.asc())).scalars().all()

    def get_by_id(self, plan_id):
        return self.db.get(Plan, plan_id)

    def get_by_name(self, name: str):
        stmt = select(Plan).where(func.lower(Plan.name) == name.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def create(self, plan: Plan):
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def update(self, plan: Plan):
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def delete(self, plan: Plan) -> None:
        self.db.delete(plan)
        self.db.commit()
