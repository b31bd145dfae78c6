from fastapi import APIRouter, Depends, Header, Query, Request

from app.shopdesk.core.context import RequestContext
from app.shopdesk.db.session import get_db
from app.shopdesk.routers.csv_io import csv_download, import_result, read_csv_upload
from app.shopdesk.schemas.commission import (
    CommissionBulkDeleteRequest,
    CommissionCalculationResponse,
    CommissionRowResponse,
    CommissionSummaryResponse,
)
from app.shopdesk.schemas.common import ActionResponse, ImportResultResponse
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.commission import CommissionService, current_month, summarize
from app.shopdesk.services.csv_codec import COMMISSIONS_SCHEMA
from app.shopdesk.services.delete_guard import DELETE_PASSWORD_HEADER, verify_delete_password
from app.shopdesk.services.plan_gating import require_feature

router = APIRouter()


def _audit_reset(db, context: RequestContext, action: str, count: int, codes: list[str] | None) -> None:
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action=action,
            entity_type="commission",
            metadata={"reset": count, "employee_ids": codes},
        )
    )


@router.get("/api/commission-calculation", response_model=CommissionCalculationResponse)
def commission_calculation(
    month: str | None = Query(default=None, description="YYYY-MM; defaults to the current month"),
    context: RequestContext = Depends(require_feature("commission")),
    db=Depends(get_db),
):
    month = month or current_month()
    rows = CommissionService(db).calculate(context.tenant_id, month)
    summary = summarize(rows)
    return CommissionCalculationResponse(
        month=month,
        commissions=[CommissionRowResponse(**row.to_dict()) for row in rows],
        summary=CommissionSummaryResponse(
            total_commissions=summary.total_commissions,
            total_sales=summary.total_sales,
            avg_commission=summary.avg_commission,
            employees=summary.employees,
        ),
        trace_id=context.trace_id,
    )


@router.get("/api/commission/export")
def export_commissions(
    month: str | None = Query(default=None),
    context: RequestContext = Depends(require_feature("commission")),
    db=Depends(get_db),
):
    month = month or current_month()
    rows = CommissionService(db).calculate(context.tenant_id, month)
    return csv_download(COMMISSIONS_SCHEMA, (row.to_dict() for row in rows), f"commissions-{month}.csv")


@router.post("/api/commission/import", response_model=ImportResultResponse)
async def import_commissions(
    request: Request,
    context: RequestContext = Depends(require_feature("commission")),
    db=Depends(get_db),
):
    parsed = await read_csv_upload(request, COMMISSIONS_SCHEMA)
    updated, errors = CommissionService(db).import_rows(context.tenant_id, parsed.rows)
    return import_result(parsed, updated, errors, context.trace_id)


@router.post("/api/commission/bulk-delete", response_model=ActionResponse)
def bulk_reset_commissions(
    payload: CommissionBulkDeleteRequest,
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("commission")),
    db=Depends(get_db),
):
    verify_delete_password(db, context.tenant_id, delete_password)
    count = CommissionService(db).reset(context.tenant_id, payload.employee_ids)
    _audit_reset(db, context, "commission.bulk_delete", count, payload.employee_ids)
    return ActionResponse(message=f"Reset commission for {count} employees", count=count, trace_id=context.trace_id)


@router.delete("/api/commission/clear", response_model=ActionResponse)
def clear_commissions(
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("commission")),
    db=Depends(get_db),
):
    verify_delete_password(db, context.tenant_id, delete_password)
    count = CommissionService(db).reset(context.tenant_id)
    _audit_reset(db, context, "commission.clear", count, None)
    return ActionResponse(message=f"Reset commission for {count} employees", count=count, trace_id=context.trace_id)
