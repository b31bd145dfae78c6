from dataclasses import asdict

from fastapi import APIRouter, Depends

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.referrals import ReferralRepository
from app.shopdesk.repos.tenants import TenantRepository
from app.shopdesk.routers.super_admin import referral_item
from app.shopdesk.schemas.admin import ReferralStatsResponse, TenantReferralResponse
from app.shopdesk.services.plan_gating import require_feature
from app.shopdesk.services.referrals import referral_stats

router = APIRouter()


@router.get("/api/referrals", response_model=TenantReferralResponse)
def my_referrals(
    context: RequestContext = Depends(require_feature("referrals")),
    db=Depends(get_db),
):
    """The store's own referral code and the shops that signed up with it."""
    tenant = TenantRepository(db).get_by_id(context.tenant_id)
    if tenant is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Tenant not found")
    rows = ReferralRepository(db).list_all(referral_code=tenant.referral_code) if tenant.referral_code else []
    return TenantReferralResponse(
        referral_code=tenant.referral_code,
        referrals=[referral_item(row) for row in rows],
        stats=ReferralStatsResponse(**asdict(referral_stats(rows))),
        trace_id=context.trace_id,
    )
