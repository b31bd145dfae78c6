from sqlalchemy import func, select

from app.shopdesk.db.models import Expense


class ExpenseRepository:
    def __init__(self, db):
        self.db = db

    def list_by_tenant(self, tenant_id, *, category: str | None = None):
        stmt = select(Expense).where(Expense.tenant_id == tenant_id)
        if category:
            stmt = stmt.where(func.lower(Expense.category) == category.strip().lower())
        return self.db.execute(stmt.order_by(Expense.spent_on.desc(), Expense.created_at.desc())).scalars().all()

    def get_in_tenant(self, expense_id, tenant_id):
        stmt = select(Expense).where(Expense.id == expense_id, Expense.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def total_between(self, tenant_id, start, end) -> float:
        stmt = select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.tenant_id == tenant_id,
            Expense.spent_on >= start,
            Expense.spent_on < end,
        )
        return float(self.db.execute(stmt).scalar_one())

    def create(self, expense: Expense):
        self.db.add(expense)
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def delete(self, expense: Expense) -> None:
        self.db.delete(expense)
        self.db.commit()
