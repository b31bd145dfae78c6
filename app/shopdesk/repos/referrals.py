from sqlalchemy import select

from app.shopdesk.db.models import Referral


class ReferralRepository:
    def __init__(self, db):
        self.db = db

    def list_all(self, *, status: str | None = None, referral_code: str | None = None):
        stmt = select(Referral)
        if status:
            stmt = stmt.where(Referral.status == status)
        if referral_code:
            stmt = stmt.where(Referral.referral_code == referral_code.strip().upper())
        return self.db.execute(stmt.order_by(Referral.date_referred.desc())).scalars().all()

    def get_by_id(self, referral_id):
        return self.db.get(Referral, referral_id)

    def create(self, referral: Referral):
        self.db.add(referral)
        self.db.commit()
        self.db.refresh(referral)
        return referral

    def update(self, referral: Referral):
        self.db.add(referral)
        self.db.commit()
        self.db.refresh(referral)
        return referral

    def delete(self, referral: Referral) -> None:
        self.db.delete(referral)
        self.db.commit()
