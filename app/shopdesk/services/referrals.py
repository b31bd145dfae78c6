from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import Referral
from app.shopdesk.repos.referrals import ReferralRepository
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.services.cart import money, to_decimal
from app.shopdesk.services.commission import round_whole

REFERRAL_STATUSES = ("Pending", "Completed")
DEFAULT_REWARD = 199
PLAN_REWARDS = {
    "enterprise": 499,
    "pro": 299,
    "professional": 299,
    "basic": 199,
}
_CODE_ALPHABET = string.ascii_uppercase + string.digits


def calculate_reward(plan_name: str | None) -> int:
    return PLAN_REWARDS.get((plan_name or "").strip().lower(), DEFAULT_REWARD)


def generate_referral_code(tenant_name: str) -> str:
    prefix = "".join(char if "A" <= char <= "Z" else "X" for char in (tenant_name or "")[:3].upper())
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(4))
    return f"{prefix.ljust(3, 'X')}{suffix}"


@dataclass(frozen=True)
class ReferralStats:
    total_referrals: int
    completed: int
    pending: int
    total_rewards: float
    completed_rewards: float
    avg_reward: int


def referral_stats(referrals: Iterable) -> ReferralStats:
    referrals = list(referrals)
    total_rewards = sum((to_decimal(item.reward) for item in referrals), Decimal("0"))
    completed = [item for item in referrals if item.status == "Completed"]
    completed_rewards = sum((to_decimal(item.reward) for item in completed), Decimal("0"))
    return ReferralStats(
        total_referrals=len(referrals),
        completed=len(completed),
        pending=sum(1 for item in referrals if item.status == "Pending"),
        total_rewards=money(total_rewards),
        completed_rewards=money(completed_rewards),
        avg_reward=round_whole(total_rewards / len(referrals)) if referrals else 0,
    )


class ReferralService:
    def __init__(self, db):
        self.repo = ReferralRepository(db)
        self.tenants = TenantRepository(db)

    def create(
        self,
        *,
        referrer_shop: str,
        referred_shop: str,
        referral_code: str,
        plan_type: str,
        referred_email: str | None = None,
        reward: float | None = None,
        status: str = "Pending",
    ) -> Referral:
        now = datetime.utcnow()
        referral = Referral(
            referrer_shop=referrer_shop,
            referred_shop=referred_shop,
            referred_email=referred_email,
            referral_code=referral_code.strip().upper(),
            plan_type=plan_type,
            reward=money(reward) if reward is not None else calculate_reward(plan_type),
            status=status,
            date_referred=now,
            date_completed=now if status == "Completed" else None,
        )
        return self.repo.create(referral)

    def set_status(self, referral_id, status: str) -> Referral:
        if status not in REFERRAL_STATUSES:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"status": status}, message="Invalid referral status")
        referral = self.repo.get_by_id(referral_id)
        if referral is None:
            raise AppError(ErrorCatalog.NOT_FOUND, message="Referral not found")
        referral.status = status
        referral.date_completed = datetime.utcnow() if status == "Completed" else None
        referral.updated_at = datetime.utcnow()
        return self.repo.update(referral)

    def validate_code(self, code: str | None) -> dict:
        if not code:
            return {"valid": False, "referrer": None, "message": "Referral code is required"}
        tenant = self.tenants.get_by_referral_code(code)
        if tenant is None:
            return {"valid": False, "referrer": None, "message": "Invalid referral code"}
        return {"valid": True, "referrer": tenant.name, "message": f"Valid referral code from {tenant.name}"}
