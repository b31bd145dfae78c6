from sqlalchemy import delete, func, or_, select

from app.shopdesk.db.models import Customer


class CustomerRepository:
    def __init__(self, db):
        self.db = db

    def list_by_tenant(self, tenant_id, *, search: str | None = None):
        stmt = select(Customer).where(Customer.tenant_id == tenant_id)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(Customer.name.ilike(pattern), Customer.phone.ilike(pattern), Customer.email.ilike(pattern))
            )
        stmt = stmt.order_by(Customer.order_count.desc(), Customer.name.asc())
        return self.db.execute(stmt).scalars().all()

    def get_in_tenant(self, customer_id, tenant_id):
        stmt = select(Customer).where(Customer.id == customer_id, Customer.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def get_by_phone(self, phone: str, tenant_id):
        stmt = select(Customer).where(Customer.tenant_id == tenant_id, Customer.phone == phone.strip())
        return self.db.execute(stmt).scalars().first()

    def find_for_sale(self, tenant_id, *, phone: str | None, name: str):
        if phone:
            return self.get_by_phone(phone, tenant_id)
        stmt = select(Customer).where(
            Customer.tenant_id == tenant_id, func.lower(Customer.name) == name.strip().lower()
        )
        return self.db.execute(stmt).scalars().first()

    def add(self, customer: Customer) -> None:
        self.db.add(customer)

    def create(self, customer: Customer):
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def update(self, customer: Customer):
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete(self, customer: Customer) -> None:
        self.db.delete(customer)
        self.db.commit()

    def clear_tenant(self, tenant_id) -> int:
        result = self.db.execute(delete(Customer).where(Customer.tenant_id == tenant_id))
        self.db.commit()
        return result.rowcount or 0
