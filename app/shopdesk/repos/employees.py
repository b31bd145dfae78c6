from sqlalchemy import delete, select

from app.shopdesk.db.models import Employee


class EmployeeRepository:
    def __init__(self, db):
        self.db = db

    def list_by_tenant(self, tenant_id, *, with_commission_only: bool = False):
        stmt = select(Employee).where(Employee.tenant_id == tenant_id)
        if with_commission_only:
            stmt = stmt.where(Employee.commission_type.is_not(None), Employee.commission_type != "none")
        return self.db.execute(stmt.order_by(Employee.name)).scalars().all()

    def get_in_tenant(self, employee_id, tenant_id):
        stmt = select(Employee).where(Employee.id == employee_id, Employee.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def get_by_code(self, employee_code: str, tenant_id):
        stmt = select(Employee).where(Employee.tenant_id == tenant_id, Employee.employee_code == employee_code.strip())
        return self.db.execute(stmt).scalars().first()

    def add(self, employee: Employee) -> None:
        self.db.add(employee)

    def create(self, employee: Employee):
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def update(self, employee: Employee):
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def delete(self, employee: Employee) -> None:
        self.db.delete(employee)
        self.db.commit()

    def clear_tenant(self, tenant_id) -> int:
        result = self.db.execute(delete(Employee).where(Employee.tenant_id == tenant_id))
        self.db.commit()
        return result.rowcount or 0
