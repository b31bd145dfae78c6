"""Low-stock alerts: which products need reordering, and a WhatsApp nudge for the owner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.logging import log_json
from app.shopdesk.repos.products import ProductRepository
from app.shopdesk.repos.tenant_config import TenantSettingsRepository
from app.shopdesk.services.whatsapp import build_wa_link, phone_digits

logger = logging.getLogger(__name__)

DEFAULT_MIN_STOCK = 10


@dataclass(frozen=True)
class LowStockAlert:
    store_name: str
    phone: str | None
    products: list
    message: str


def min_stock(product) -> int:
    return product.min_stock if product.min_stock is not None else DEFAULT_MIN_STOCK


def build_low_stock_message(store_name: str, products, now: datetime | None = None) -> str:
    lines = [f"🚨 LOW STOCK ALERT - {store_name}", ""]
    lines.extend(
        f"• {product.name}: {product.stock} left (Min: {min_stock(product)})"
        for product in products
    )
    lines.extend(["", f"Total items: {len(products)}", f"Date: {(now or datetime.utcnow()).strftime('%d/%m/%Y')}"])
    return "\n".join(lines)


class LowStockAlertService:
    def __init__(self, db):
        self.products = ProductRepository(db)
        self.settings = TenantSettingsRepository(db)

    def collect(self, tenant_id) -> LowStockAlert:
        settings_row = self.settings.get(tenant_id)
        store_name = getattr(settings_row, "store_name", None) or "Store"
        phone = getattr(settings_row, "phone", None)
        products = self.products.list_low_stock(tenant_id, default_min_stock=DEFAULT_MIN_STOCK)
        message = build_low_stock_message(store_name, products) if products else ""
        return LowStockAlert(store_name=store_name, phone=phone, products=products, message=message)

    def ensure_phone(self, alert: LowStockAlert) -> None:
        if not phone_digits(alert.phone):
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "phone"},
                message="Store phone number not set in settings",
            )

    def whatsapp_link(self, alert: LowStockAlert) -> str:
        return build_wa_link(alert.phone, alert.message)


def log_alert(tenant_id, alert: LowStockAlert, *, trigger: str, trace_id: str | None = None) -> None:
    log_json(
        logger,
        {
            "event": "low_stock_alert",
            "trace_id": trace_id,
            "tenant_id": str(tenant_id),
            "products": len(alert.products),
            "trigger": trigger,
        },
    )
