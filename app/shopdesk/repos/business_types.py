from sqlalchemy import func, select

from app.shopdesk.db.models import BusinessType


class BusinessTypeRepository:
    def __init__(self, db):
        self.db = db

    def list_all(self):
        return self.db.execute(select(BusinessType).order_by(BusinessType.name)).scalars().all()

    def get_by_id(self, business_type_id):
        return self.db.get(BusinessType, business_type_id)

    def get_by_name(self, name: str):
        stmt = select(BusinessType).where(func.lower(BusinessType.name) == name.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def create(self, business_type: BusinessType):
        self.db.add(business_type)
        self.db.commit()
        self.db.refresh(business_type)
        return business_type

    def update(self, business_type: BusinessType):
        self.db.add(business_type)
        self.db.commit()
        self.db.refresh(business_type)
        return business_type

    def delete(self, business_type: BusinessType) -> None:
        self.db.delete(business_type)
        self.db.commit()
