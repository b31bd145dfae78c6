import logging

from fastapi import APIRouter, Depends, Request

from app.shopdesk.core.config import settings
from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.logging import log_json
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.sales import SaleRepository
from app.shopdesk.repos.tenant_config import TenantSettingsRepository
from app.shopdesk.schemas.whatsapp import (
    SendBillRequest,
    SendBillResponse,
    WhatsAppQrResponse,
    WhatsAppStatusResponse,
)
from app.shopdesk.services.plan_gating import require_feature
from app.shopdesk.services.receipts import public_receipt_url
from app.shopdesk.services.whatsapp import BridgeStatus, WhatsAppBridgeClient, build_bill_message

logger = logging.getLogger(__name__)

router = APIRouter()


def get_whatsapp_client(request: Request):
    """Shared bridge client from the app lifespan, or a short-lived one."""
    client = getattr(request.app.state, "whatsapp_client", None)
    if client is not None:
        yield client
        return
    client = WhatsAppBridgeClient.from_settings(settings)
    try:
        yield client
    finally:
        client.close()


def _status_response(status: BridgeStatus) -> WhatsAppStatusResponse:
    return WhatsAppStatusResponse(**status.to_dict())


@router.get("/api/whatsapp/status", response_model=WhatsAppStatusResponse)
def whatsapp_status(
    request: Request,
    context: RequestContext = Depends(require_feature("whatsapp")),
    client: WhatsAppBridgeClient = Depends(get_whatsapp_client),
):
    poller = getattr(request.app.state, "whatsapp_poller", None)
    if poller is not None and poller.running:
        return _status_response(poller.latest)
    try:
        status = client.status()
    except AppError as exc:
        status = BridgeStatus(ready=False, error="WhatsApp service not running")
        log_json(logger, {"event": "whatsapp_status_unavailable", "trace_id": context.trace_id, "error": exc.message})
    return _status_response(status)


@router.post("/api/whatsapp/status", response_model=WhatsAppQrResponse)
def whatsapp_qr(
    context: RequestContext = Depends(require_feature("whatsapp")),
    client: WhatsAppBridgeClient = Depends(get_whatsapp_client),
):
    qr = client.qr()
    if qr is None:
        return WhatsAppQrResponse(qr=None, message="No QR code available; the session may already be linked")
    return WhatsAppQrResponse(qr=qr)


@router.post("/api/send-bill", response_model=SendBillResponse)
def send_bill(
    payload: SendBillRequest,
    context: RequestContext = Depends(require_feature("whatsapp")),
    client: WhatsAppBridgeClient = Depends(get_whatsapp_client),
    db=Depends(get_db),
):
    phone = payload.phone
    message = payload.message
    if payload.sale_id is not None:
        sale = SaleRepository(db).get_in_tenant(payload.sale_id, context.tenant_id)
        if sale is None:
            raise AppError(ErrorCatalog.NOT_FOUND, message="Bill not found")
        settings_row = TenantSettingsRepository(db).get(context.tenant_id)
        phone = phone or sale.customer_phone
        if not phone:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "customer_phone"},
                message="Customer phone number required",
            )
        message = message or build_bill_message(
            sale,
            settings_row,
            receipt_url=public_receipt_url(settings.PUBLIC_BASE_URL, sale.id),
        )
    client.send_message(phone, message)
    return SendBillResponse(success=True, message="Bill sent successfully via WhatsApp", trace_id=context.trace_id)


@router.post("/api/whatsapp/logout", response_model=SendBillResponse)
def whatsapp_logout(
    context: RequestContext = Depends(require_feature("whatsapp")),
    client: WhatsAppBridgeClient = Depends(get_whatsapp_client),
):
    client.logout()
    log_json(logger, {"event": "whatsapp_logout", "trace_id": context.trace_id, "tenant_id": context.tenant_id})
    return SendBillResponse(success=True, message="WhatsApp session logged out", trace_id=context.trace_id)
