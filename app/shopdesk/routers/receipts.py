from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import HTMLResponse

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.deps import require_tenant_context
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.sales import SaleRepository
from app.shopdesk.repos.tenant_config import TenantSettingsRepository
from app.shopdesk.services.receipts import (
    RECEIPT_FORMATS,
    ReceiptStore,
    pdf_filename,
    render_receipt_html,
    render_receipt_pdf,
)

router = APIRouter()


def _receipt_html(db, sale, receipt_format: str | None, auto_print: bool) -> HTMLResponse:
    settings_row = TenantSettingsRepository(db).get(sale.tenant_id)
    chosen = receipt_format or getattr(settings_row, "bill_format", None) or "professional"
    if chosen not in RECEIPT_FORMATS:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"bill_format": chosen, "allowed": list(RECEIPT_FORMATS)},
            message="Unsupported receipt format",
        )
    html = render_receipt_html(
        sale,
        ReceiptStore.for_sale(sale, settings_row),
        receipt_format=chosen,
        auto_print=auto_print,
    )
    return HTMLResponse(content=html)


@router.get("/api/receipt/{sale_id}", response_class=HTMLResponse)
def tenant_receipt(
    sale_id: UUID,
    bill_format: str | None = Query(default=None),
    auto_print: bool = Query(True),
    context: RequestContext = Depends(require_tenant_context),
    db=Depends(get_db),
):
    sale = SaleRepository(db).get_in_tenant(sale_id, context.tenant_id)
    if sale is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Bill not found")
    return _receipt_html(db, sale, bill_format, auto_print)


@router.get("/api/public-receipt/{sale_id}", response_class=HTMLResponse)
def public_receipt(
    sale_id: UUID,
    bill_format: str | None = Query(default=None),
    db=Depends(get_db),
):
    # Shared with customers over WhatsApp; the unguessable sale id is the only credential.
    sale = SaleRepository(db).get_by_id(sale_id)
    if sale is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Bill not found")
    return _receipt_html(db, sale, bill_format, auto_print=False)


@router.get("/api/bill-pdf/{sale_id}")
def bill_pdf(
    sale_id: UUID,
    context: RequestContext = Depends(require_tenant_context),
    db=Depends(get_db),
):
    sale = SaleRepository(db).get_in_tenant(sale_id, context.tenant_id)
    if sale is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Bill not found")
    settings_row = TenantSettingsRepository(db).get(sale.tenant_id)
    content = render_receipt_pdf(sale, ReceiptStore.for_sale(sale, settings_row))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(sale)}"'},
    )
