from __future__ import annotations

import logging
import random
import re
import time
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import Product
from app.shopdesk.repos.products import ProductRepository
from app.shopdesk.repos.tenant_config import TenantFieldConfigRepository
from app.shopdesk.services.cart import money
from app.shopdesk.services.plan_gating import check_product_limit

logger = logging.getLogger(__name__)

BARCODE_PREFIX = "FS"
DEFAULT_CATEGORY = "General"
# Columns of the product row itself; business-type fields with these names
# are not duplicated into ``attributes``.
CORE_FIELDS = {"name", "sku", "barcode", "category", "price", "cost_price", "stock", "min_stock"}
LIST_FIELD_HINTS = ("size", "color")


def generate_barcode(prefix: str = BARCODE_PREFIX, now_ms: int | None = None) -> str:
    stamp = str(now_ms if now_ms is not None else int(time.time() * 1000))[-6:]
    return f"{prefix}{stamp}{random.randint(0, 999):03d}"


def generate_sku(now_ms: int | None = None) -> str:
    return f"SKU-{now_ms if now_ms is not None else int(time.time() * 1000)}"


def field_key(name: str) -> str:
    return re.sub(r"\s+", "_", (name or "").strip().lower())


def build_attributes(fields: list[dict], submitted: dict) -> dict:
    """Keep submitted values for the tenant's enabled business-type fields."""
    attributes = {}
    for field in fields or []:
        if not field.get("enabled", True):
            continue
        name = field.get("name") or ""
        key = field_key(name)
        if not key or key in CORE_FIELDS:
            continue
        value = submitted.get(key)
        if value is None:
            value = submitted.get(name)
        if value is None or value == "":
            continue
        field_type = field.get("type")
        if field_type == "number":
            try:
                value = float(value)
            except (TypeError, ValueError):
                value = 0.0
        elif field_type == "text" and any(hint in key for hint in LIST_FIELD_HINTS) and isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        attributes[key] = value
    return attributes


class InventoryService:
    def __init__(self, db):
        self.db = db
        self.repo = ProductRepository(db)
        self.fields = TenantFieldConfigRepository(db)

    def _ensure_barcode_free(self, tenant_id, barcode: str, product_id=None) -> None:
        existing = self.repo.get_by_barcode(barcode, tenant_id)
        if existing is not None and existing.id != product_id:
            raise AppError(ErrorCatalog.BARCODE_EXISTS, details={"barcode": barcode})

    def _tenant_fields(self, tenant_id) -> list[dict]:
        config = self.fields.get(tenant_id)
        return list(config.fields) if config is not None else []

    def create(self, tenant_id, data: dict) -> Product:
        check_product_limit(self.db, tenant_id)
        barcode = (data.get("barcode") or "").strip() or generate_barcode()
        self._ensure_barcode_free(tenant_id, barcode)
        price = data.get("price") or 0
        product = Product(
            tenant_id=tenant_id,
            name=(data.get("name") or "").strip() or "Unnamed Product",
            sku=(data.get("sku") or "").strip() or generate_sku(),
            barcode=barcode,
            category=(data.get("category") or "").strip() or DEFAULT_CATEGORY,
            price=money(price),
            original_price=money(data.get("original_price") or price),
            cost_price=money(data.get("cost_price") or 0),
            stock=int(data.get("stock") or 0),
            min_stock=int(data.get("min_stock") or 0),
            status=data.get("status") or "active",
            attributes=build_attributes(self._tenant_fields(tenant_id), data.get("attributes") or {}),
        )
        try:
            return self.repo.create(product)
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.BARCODE_EXISTS, details={"barcode": barcode}) from exc

    def update(self, product: Product, changes: dict) -> Product:
        if changes.get("barcode") and changes["barcode"] != product.barcode:
            self._ensure_barcode_free(product.tenant_id, changes["barcode"], product.id)
        for key in ("name", "sku", "barcode", "category", "status"):
            if changes.get(key) is not None:
                setattr(product, key, changes[key])
        for key in ("price", "original_price", "cost_price"):
            if changes.get(key) is not None:
                setattr(product, key, money(changes[key]))
        for key in ("stock", "min_stock"):
            if changes.get(key) is not None:
                setattr(product, key, int(changes[key]))
        if changes.get("attributes") is not None:
            merged = dict(product.attributes or {})
            merged.update(build_attributes(self._tenant_fields(product.tenant_id), changes["attributes"]))
            product.attributes = merged
        product.updated_at = datetime.utcnow()
        return self.repo.update(product)

    def import_rows(self, tenant_id, rows: list[dict]) -> tuple[int, list[dict]]:
        """Create products from parsed CSV rows; the whole file must fit the plan."""
        check_product_limit(self.db, tenant_id, adding=len(rows))
        imported = 0
        errors = []
        for index, row in enumerate(rows, start=1):
            try:
                self.create(tenant_id, row)
            except AppError as exc:
                errors.append({"row": index, "message": exc.message})
                continue
            imported += 1
        return imported, errors

    def restock(self, tenant_id, *, sku: str | None, name: str | None, quantity: int, unit_price, source: str) -> Product:
        """Add received units to the matching product (SKU first, then name) or create it."""
        product = self.repo.find_for_restock(tenant_id, sku=sku, name=name)
        if product is not None:
            product.stock = (product.stock or 0) + quantity
            product.updated_at = datetime.utcnow()
            self.db.add(product)
            return product
        product = Product(
            tenant_id=tenant_id,
            name=(name or "").strip() or f"Product from {source}",
            sku=(sku or "").strip() or generate_sku(),
            barcode=generate_barcode(),
            category=DEFAULT_CATEGORY,
            price=money(unit_price or 0),
            original_price=money(unit_price or 0),
            cost_price=money(unit_price or 0),
            stock=quantity,
            min_stock=5,
            status="active",
            attributes={"description": f"Added from {source}"},
        )
        self.db.add(product)
        self.db.flush()
        return product
