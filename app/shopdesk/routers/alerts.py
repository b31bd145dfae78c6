from fastapi import APIRouter, Depends

from app.shopdesk.core.context import RequestContext
from app.shopdesk.db.session import get_db
from app.shopdesk.schemas.alerts import LowStockProduct, LowStockResponse
from app.shopdesk.services.alerts import LowStockAlert, LowStockAlertService, log_alert, min_stock
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.plan_gating import require_feature

router = APIRouter()


def _products(alert: LowStockAlert) -> list[LowStockProduct]:
    return [
        LowStockProduct(
            id=str(product.id),
            name=product.name,
            sku=product.sku,
            stock=product.stock,
            min_stock=min_stock(product),
        )
        for product in alert.products
    ]


def _record(db, context: RequestContext, alert: LowStockAlert, trigger: str) -> None:
    log_alert(context.tenant_id, alert, trigger=trigger, trace_id=context.trace_id)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="alert.low_stock",
            entity_type="product",
            metadata={"products": len(alert.products), "trigger": trigger},
        )
    )


@router.get("/api/alerts/low-stock", response_model=LowStockResponse)
def low_stock_report(
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    alert = LowStockAlertService(db).collect(context.tenant_id)
    if not alert.products:
        return LowStockResponse(message="No low stock items found", products=[], trace_id=context.trace_id)
    _record(db, context, alert, "manual_trigger")
    return LowStockResponse(
        message="Low stock alert generated",
        products=_products(alert),
        alert_message=alert.message,
        phone=alert.phone,
        trace_id=context.trace_id,
    )


@router.post("/api/alerts/low-stock", response_model=LowStockResponse)
def send_low_stock_alert(
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    """Prepare a wa.me link that sends the low-stock list to the store's own phone."""
    service = LowStockAlertService(db)
    alert = service.collect(context.tenant_id)
    service.ensure_phone(alert)
    if not alert.products:
        return LowStockResponse(message="No low stock items to alert about", products=[], trace_id=context.trace_id)
    whatsapp_url = service.whatsapp_link(alert)
    _record(db, context, alert, "whatsapp_url_generated")
    return LowStockResponse(
        message="Low stock alert ready to send",
        products=_products(alert),
        alert_message=alert.message,
        phone=alert.phone,
        whatsapp_url=whatsapp_url,
        trace_id=context.trace_id,
    )
