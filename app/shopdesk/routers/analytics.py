from fastapi import APIRouter, Depends, Query

from app.shopdesk.core.context import RequestContext
from app.shopdesk.db.session import get_db
from app.shopdesk.schemas.analytics import AnalyticsSummaryResponse
from app.shopdesk.services.analytics import DEFAULT_PERIOD_DAYS, AnalyticsService
from app.shopdesk.services.plan_gating import require_feature

router = APIRouter()


@router.get("/api/analytics/summary", response_model=AnalyticsSummaryResponse)
def analytics_summary(
    days: int = Query(default=DEFAULT_PERIOD_DAYS),
    context: RequestContext = Depends(require_feature("reports")),
    db=Depends(get_db),
):
    summary = AnalyticsService(db).summary(context.tenant_id, days)
    return AnalyticsSummaryResponse(**summary.to_dict(), trace_id=context.trace_id)
