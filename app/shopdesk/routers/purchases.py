from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import Purchase
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.purchases import PurchaseRepository
from app.shopdesk.routers.csv_io import csv_download, import_result, read_csv_upload
from app.shopdesk.schemas.common import ActionResponse, ImportResultResponse
from app.shopdesk.schemas.purchases import (
    PurchaseCreateRequest,
    PurchaseItem,
    PurchaseLineResponse,
    PurchaseListResponse,
    PurchaseUpdateRequest,
)
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.csv_codec import PURCHASES_SCHEMA
from app.shopdesk.services.delete_guard import DELETE_PASSWORD_HEADER, verify_delete_password
from app.shopdesk.services.plan_gating import require_feature
from app.shopdesk.services.purchases import PurchaseService

router = APIRouter()


def _purchase_item(purchase: Purchase) -> PurchaseItem:
    return PurchaseItem(
        id=str(purchase.id),
        po_number=purchase.po_number,
        supplier_name=purchase.supplier_name,
        supplier_contact=purchase.supplier_contact,
        order_date=purchase.order_date,
        status=purchase.status,
        items=[PurchaseLineResponse(**item) for item in purchase.items or []],
        subtotal=purchase.subtotal,
        tax=purchase.tax,
        total=purchase.total,
        notes=purchase.notes,
        received_at=purchase.received_at,
        created_by=purchase.created_by,
        created_at=purchase.created_at,
    )


def _get_purchase(db, purchase_id: UUID, tenant_id: str) -> Purchase:
    purchase = PurchaseRepository(db).get_in_tenant(purchase_id, tenant_id)
    if purchase is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"purchase_id": str(purchase_id)}, message="Purchase not found")
    return purchase


@router.get("/api/purchases", response_model=PurchaseListResponse)
def list_purchases(
    status: str | None = Query(default=None),
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    rows = PurchaseRepository(db).list_by_tenant(context.tenant_id, status=status)
    return PurchaseListResponse(purchases=[_purchase_item(row) for row in rows], trace_id=context.trace_id)


@router.post("/api/purchases", response_model=PurchaseItem, status_code=201)
def create_purchase(
    payload: PurchaseCreateRequest,
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    purchase = PurchaseService(db).create(
        context.tenant_id,
        payload.model_dump(),
        created_by=context.username,
    )
    return _purchase_item(purchase)


@router.get("/api/purchases/export")
def export_purchases(
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    rows = PurchaseRepository(db).list_by_tenant(context.tenant_id)
    return csv_download(
        PURCHASES_SCHEMA,
        (
            {
                "po_number": row.po_number,
                "supplier_name": row.supplier_name,
                "supplier_contact": row.supplier_contact,
                "order_date": row.order_date,
                "items": row.items or [],
                "subtotal": row.subtotal,
                "tax": row.tax,
                "total": row.total,
                "status": row.status,
                "notes": row.notes,
            }
            for row in rows
        ),
        "purchases.csv",
    )


@router.post("/api/purchases/import", response_model=ImportResultResponse)
async def import_purchases(
    request: Request,
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    parsed = await read_csv_upload(request, PURCHASES_SCHEMA)
    imported, errors = PurchaseService(db).import_rows(context.tenant_id, parsed.rows, created_by=context.username)
    return import_result(parsed, imported, errors, context.trace_id)


@router.delete("/api/purchases/clear", response_model=ActionResponse)
def clear_purchases(
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    verify_delete_password(db, context.tenant_id, delete_password)
    count = PurchaseRepository(db).clear_tenant(context.tenant_id)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="purchase.clear",
            entity_type="purchase",
            metadata={"deleted": count},
        )
    )
    return ActionResponse(message=f"Deleted {count} purchases", count=count, trace_id=context.trace_id)


@router.get("/api/purchases/{purchase_id}", response_model=PurchaseItem)
def get_purchase(
    purchase_id: UUID,
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    return _purchase_item(_get_purchase(db, purchase_id, context.tenant_id))


@router.put("/api/purchases/{purchase_id}", response_model=PurchaseItem)
def update_purchase(
    purchase_id: UUID,
    payload: PurchaseUpdateRequest,
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    purchase = _get_purchase(db, purchase_id, context.tenant_id)
    purchase = PurchaseService(db).update(purchase, payload.model_dump(exclude_unset=True))
    return _purchase_item(purchase)


@router.delete("/api/purchases/{purchase_id}", response_model=ActionResponse)
def delete_purchase(
    purchase_id: UUID,
    context: RequestContext = Depends(require_feature("purchases")),
    db=Depends(get_db),
):
    PurchaseRepository(db).delete(_get_purchase(db, purchase_id, context.tenant_id))
    return ActionResponse(message="Purchase deleted", count=1, trace_id=context.trace_id)
