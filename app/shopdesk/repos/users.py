from sqlalchemy import func, or_, select

from app.shopdesk.db.models import User


class UserRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, user_id):
        return self.db.get(User, user_id)

    def get_by_username_or_email(self, identifier: str):
        normalized = identifier.strip().lower()
        stmt = select(User).where(
            or_(func.lower(User.username) == normalized, func.lower(User.email) == normalized)
        )
        return self.db.execute(stmt).scalars().first()

    def exists(self, *, username: str, email: str) -> bool:
        stmt = select(User.id).where(
            or_(func.lower(User.username) == username.strip().lower(), func.lower(User.email) == email.strip().lower())
        )
        return self.db.execute(stmt).first() is not None

    def list_superadmins(self):
        stmt = select(User).where(User.tenant_id.is_(None)).order_by(User.created_at.desc())
        return self.db.execute(stmt).scalars().all()

    def count_by_tenant(self, tenant_id) -> int:
        stmt = select(func.count()).select_from(User).where(User.tenant_id == tenant_id)
        return self.db.execute(stmt).scalar_one()

    def list_by_tenant(self, tenant_id):
        stmt = select(User).where(User.tenant_id == tenant_id).order_by(User.username)
        return self.db.execute(stmt).scalars().all()

    def create(self, user: User):
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()
