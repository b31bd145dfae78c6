from __future__ import annotations

import time
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from app.shopdesk.core.config import settings
from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.metrics import metrics
from app.shopdesk.db.models import HeldBill
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.products import ProductRepository
from app.shopdesk.repos.sales import HeldBillRepository, SaleQueryFilters, SaleRepository
from app.shopdesk.repos.tenant_config import TenantSettingsRepository
from app.shopdesk.routers.csv_io import csv_download, import_result, read_csv_upload
from app.shopdesk.routers.inventory import product_item
from app.shopdesk.schemas.common import ActionResponse, ImportResultResponse, ListPaginationMeta
from app.shopdesk.schemas.inventory import ProductListResponse
from app.shopdesk.schemas.pos_sales import (
    HeldBillCreateRequest,
    HeldBillListResponse,
    HeldBillResponse,
    SaleCreateRequest,
    SaleItemResponse,
    SaleListResponse,
    SaleResponse,
    ScanRequest,
    ScanResponse,
    WhatsAppLinkResponse,
)
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.cart import CartLine, calculate_totals, hold_code_for, money, round2, to_decimal
from app.shopdesk.services.checkout import (
    PAYMENT_METHODS,
    CheckoutLine,
    CheckoutRequest,
    CheckoutService,
    import_bills,
)
from app.shopdesk.services.csv_codec import BILLS_SCHEMA
from app.shopdesk.services.delete_guard import DELETE_PASSWORD_HEADER, verify_delete_password
from app.shopdesk.services.idempotency import REPLAY_HEADER, IdempotencyService, extract_idempotency_key
from app.shopdesk.services.plan_gating import require_feature
from app.shopdesk.services.receipts import public_receipt_url
from app.shopdesk.services.scanner import BarcodeScanBuffer
from app.shopdesk.services.whatsapp import build_bill_message, build_wa_link

router = APIRouter()

POS_SEARCH_LIMIT = 20


def _sale_item_response(item) -> SaleItemResponse:
    return SaleItemResponse(
        product_id=str(item.product_id) if item.product_id else None,
        name=item.name,
        price=item.price,
        quantity=item.quantity,
        total=item.total,
    )


def sale_response(sale) -> SaleResponse:
    return SaleResponse(
        id=str(sale.id),
        bill_no=sale.bill_no,
        customer_name=sale.customer_name,
        customer_phone=sale.customer_phone,
        staff_member=sale.staff_member,
        cashier=sale.cashier,
        items=[_sale_item_response(item) for item in sale.items],
        subtotal=sale.subtotal,
        discount=sale.discount,
        discount_amount=sale.discount_amount,
        tax_rate=sale.tax_rate,
        tax=sale.tax,
        total=sale.total,
        payment_method=sale.payment_method,
        store_name=sale.store_name,
        created_at=sale.created_at,
    )


def _held_bill_response(held_bill: HeldBill) -> HeldBillResponse:
    return HeldBillResponse(
        hold_code=held_bill.hold_code,
        items=[SaleItemResponse(**CartLine.from_dict(item).to_dict()) for item in held_bill.items],
        discount=held_bill.discount,
        customer_name=held_bill.customer_name,
        customer_phone=held_bill.customer_phone,
        subtotal=held_bill.subtotal,
        total=held_bill.total,
        created_by=held_bill.created_by,
        created_at=held_bill.created_at,
    )


def _bill_row(sale) -> dict:
    return {
        "bill_no": sale.bill_no,
        "customer_name": sale.customer_name,
        "customer_phone": sale.customer_phone,
        "items": [
            {"name": item.name, "quantity": item.quantity, "price": item.price, "total": item.total}
            for item in sale.items
        ],
        "subtotal": sale.subtotal,
        "discount": sale.discount,
        "discount_amount": sale.discount_amount,
        "tax": sale.tax,
        "total": sale.total,
        "payment_method": sale.payment_method,
        "staff_member": sale.staff_member,
        "created_at": sale.created_at,
    }


def _payment_method(value: str) -> str:
    method = (value or "cash").strip().lower()
    if method not in PAYMENT_METHODS:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"payment_method": value, "allowed": list(PAYMENT_METHODS)},
            message="Unsupported payment method",
        )
    return method


def _get_sale(db, sale_id: UUID, tenant_id: str):
    sale = SaleRepository(db).get_in_tenant(sale_id, tenant_id)
    if sale is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"sale_id": str(sale_id)}, message="Bill not found")
    return sale


def _start_idempotent(request: Request, db, tenant_id: str, payload) -> JSONResponse | None:
    idempotency_key = extract_idempotency_key(request.headers, required=True)
    request_hash = IdempotencyService.fingerprint(payload.model_dump(mode="json"))
    context, replay = IdempotencyService(db).start(
        tenant_id=tenant_id,
        endpoint=str(request.url.path),
        method=request.method,
        idempotency_key=idempotency_key,
        request_hash=request_hash,
    )
    if replay:
        metrics.increment_idempotency_replay()
        return JSONResponse(
            status_code=replay.status_code,
            content=replay.response_body,
            headers={REPLAY_HEADER: ErrorCatalog.IDEMPOTENCY_REPLAY.code},
        )
    request.state.idempotency = context
    return None


@router.get("/api/pos/sales", response_model=SaleListResponse)
def list_sales(
    search: str | None = Query(default=None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    page_size = min(page_size, settings.SALES_LIST_MAX_PAGE_SIZE)
    rows, total = SaleRepository(db).list_sales(
        SaleQueryFilters(
            tenant_id=context.tenant_id,
            search=search,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
    )
    return SaleListResponse(
        sales=[sale_response(sale) for sale in rows],
        pagination=ListPaginationMeta(total=total, count=len(rows), page=page, page_size=page_size),
        trace_id=context.trace_id,
    )


@router.post("/api/pos/sales", response_model=SaleResponse, status_code=201)
def create_sale(
    request: Request,
    payload: SaleCreateRequest,
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    replay = _start_idempotent(request, db, context.tenant_id, payload)
    if replay is not None:
        return replay
    idempotency = request.state.idempotency

    checkout = CheckoutRequest(
        lines=[
            CheckoutLine(product_id=str(item.product_id), quantity=item.quantity, price=item.price)
            for item in payload.items
        ],
        discount_pct=payload.discount,
        tax_rate_pct=payload.tax_rate,
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        payment_method=_payment_method(payload.payment_method),
        staff_member=payload.staff_member,
        cashier=payload.cashier or context.username,
    )
    sale = CheckoutService(db).commit(context.tenant_id, checkout, trace_id=context.trace_id)

    response = sale_response(sale)
    idempotency.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="pos_sale.create",
            entity_type="sale",
            entity_id=str(sale.id),
            after={"bill_no": sale.bill_no, "total": sale.total, "lines": len(sale.items)},
            metadata={"payment_method": sale.payment_method},
        )
    )
    return response


@router.get("/api/pos/sales/export")
def export_sales(
    context: RequestContext = Depends(require_feature("bills")),
    db=Depends(get_db),
):
    rows = SaleRepository(db).list_all(context.tenant_id)
    return csv_download(BILLS_SCHEMA, (_bill_row(sale) for sale in rows), "bills.csv")


@router.post("/api/pos/sales/import", response_model=ImportResultResponse)
async def import_sales(
    request: Request,
    context: RequestContext = Depends(require_feature("bills")),
    db=Depends(get_db),
):
    parsed = await read_csv_upload(request, BILLS_SCHEMA)
    imported, errors = import_bills(db, context.tenant_id, parsed.rows)
    return import_result(parsed, imported, errors, context.trace_id)


@router.delete("/api/pos/sales/clear", response_model=ActionResponse)
def clear_sales(
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    verify_delete_password(db, context.tenant_id, delete_password)
    count = SaleRepository(db).clear_tenant(context.tenant_id)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="pos_sale.clear",
            entity_type="sale",
            metadata={"deleted": count},
        )
    )
    return ActionResponse(message=f"Deleted {count} bills", count=count, trace_id=context.trace_id)


@router.get("/api/pos/sales/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: UUID,
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    return sale_response(_get_sale(db, sale_id, context.tenant_id))


@router.delete("/api/pos/sales/{sale_id}", response_model=ActionResponse)
def delete_sale(
    sale_id: UUID,
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    sale = _get_sale(db, sale_id, context.tenant_id)
    verify_delete_password(db, context.tenant_id, delete_password)
    before = {"bill_no": sale.bill_no, "total": sale.total}
    SaleRepository(db).delete(sale)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="pos_sale.delete",
            entity_type="sale",
            entity_id=str(sale_id),
            before=before,
        )
    )
    return ActionResponse(message="Bill deleted", count=1, trace_id=context.trace_id)


@router.get("/api/pos/sales/{sale_id}/whatsapp-link", response_model=WhatsAppLinkResponse)
def sale_whatsapp_link(
    sale_id: UUID,
    phone: str | None = Query(default=None),
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    sale = _get_sale(db, sale_id, context.tenant_id)
    settings_row = TenantSettingsRepository(db).get(context.tenant_id)
    receipt_url = public_receipt_url(settings.PUBLIC_BASE_URL, sale.id)
    message = build_bill_message(sale, settings_row, receipt_url=receipt_url)
    target = phone or sale.customer_phone
    return WhatsAppLinkResponse(
        sale_id=str(sale.id),
        phone=target or "",
        message=message,
        link=build_wa_link(target, message),
        receipt_url=receipt_url,
    )


@router.get("/api/pos/search", response_model=ProductListResponse)
def search_products(
    q: str = Query(..., min_length=1),
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    repo = ProductRepository(db)
    exact = repo.get_by_barcode(q.strip(), context.tenant_id)
    if exact is not None:
        rows = [exact]
    else:
        rows = repo.list_by_tenant(context.tenant_id, search=q, limit=POS_SEARCH_LIMIT)
    return ProductListResponse(products=[product_item(row) for row in rows], trace_id=context.trace_id)


@router.get("/api/pos/products", response_model=ProductListResponse)
def pos_products(
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    rows = ProductRepository(db).list_by_tenant(context.tenant_id, in_stock_only=True)
    return ProductListResponse(products=[product_item(row) for row in rows], trace_id=context.trace_id)


@router.post("/api/pos/scan", response_model=ScanResponse)
def scan_barcode(
    payload: ScanRequest,
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    """Replay relayed keystrokes through the scan buffer and look the code up."""
    buffer = BarcodeScanBuffer(max_interval_ms=settings.SCANNER_KEY_INTERVAL_MS)
    barcode = None
    for event in payload.keys:
        code = buffer.feed(event.key, event.at_ms)
        if code:
            barcode = code
    product = ProductRepository(db).get_by_barcode(barcode, context.tenant_id) if barcode else None
    return ScanResponse(
        barcode=barcode,
        product=product_item(product) if product is not None else None,
        trace_id=context.trace_id,
    )


@router.get("/api/pos/held-bills", response_model=HeldBillListResponse)
def list_held_bills(
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    rows = HeldBillRepository(db).list_by_tenant(context.tenant_id)
    return HeldBillListResponse(held_bills=[_held_bill_response(row) for row in rows], trace_id=context.trace_id)


@router.post("/api/pos/held-bills", response_model=HeldBillResponse, status_code=201)
def hold_bill(
    request: Request,
    payload: HeldBillCreateRequest,
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    replay = _start_idempotent(request, db, context.tenant_id, payload)
    if replay is not None:
        return replay
    idempotency = request.state.idempotency

    if not payload.items:
        raise AppError(ErrorCatalog.CART_EMPTY)
    lines = [
        CartLine(product_id=item.product_id, name=item.name, price=round2(item.price), quantity=item.quantity)
        for item in payload.items
    ]
    settings_row = TenantSettingsRepository(db).get_or_create(context.tenant_id)
    totals = calculate_totals(lines, payload.discount, to_decimal(settings_row.tax_rate))

    repo = HeldBillRepository(db)
    held_at = int(time.time() * 1000)
    while repo.get_by_code(context.tenant_id, hold_code_for(held_at)) is not None:
        held_at += 1
    held_bill = repo.create(
        HeldBill(
            tenant_id=context.tenant_id,
            hold_code=hold_code_for(held_at),
            items=[line.to_dict() for line in lines],
            discount=money(payload.discount),
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
            subtotal=money(totals.subtotal),
            total=money(totals.total),
            created_by=context.username,
        )
    )

    response = _held_bill_response(held_bill)
    idempotency.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="held_bill.hold",
            entity_type="held_bill",
            entity_id=held_bill.hold_code,
            after={"items": len(lines), "total": held_bill.total},
        )
    )
    return response


@router.post("/api/pos/held-bills/{hold_code}/resume", response_model=HeldBillResponse)
def resume_held_bill(
    hold_code: str,
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    repo = HeldBillRepository(db)
    held_bill = repo.get_by_code(context.tenant_id, hold_code)
    if held_bill is None:
        raise AppError(ErrorCatalog.HELD_BILL_NOT_FOUND, details={"hold_code": hold_code})
    response = _held_bill_response(held_bill)
    repo.delete(held_bill)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="held_bill.resume",
            entity_type="held_bill",
            entity_id=hold_code,
        )
    )
    return response


@router.delete("/api/pos/held-bills/{hold_code}", response_model=ActionResponse)
def discard_held_bill(
    hold_code: str,
    context: RequestContext = Depends(require_feature("pos")),
    db=Depends(get_db),
):
    repo = HeldBillRepository(db)
    held_bill = repo.get_by_code(context.tenant_id, hold_code)
    if held_bill is None:
        raise AppError(ErrorCatalog.HELD_BILL_NOT_FOUND, details={"hold_code": hold_code})
    repo.delete(held_bill)
    return ActionResponse(message="Held bill discarded", trace_id=context.trace_id)
