from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.logging import log_json
from app.shopdesk.db.models import Purchase
from app.shopdesk.repos.purchases import PurchaseRepository
from app.shopdesk.repos.tenant_config import TenantSettingsRepository
from app.shopdesk.services.cart import HUNDRED, money, round2, to_decimal
from app.shopdesk.services.inventory import InventoryService

logger = logging.getLogger(__name__)

PURCHASE_STATUSES = ("pending", "completed", "cancelled")


def normalize_items(items: list[dict]) -> list[dict]:
    normalized = []
    for item in items or []:
        quantity = int(item.get("quantity") or 0)
        unit_price = round2(item.get("unit_price") or 0)
        normalized.append(
            {
                "name": (item.get("name") or "").strip(),
                "sku": (item.get("sku") or "").strip() or None,
                "quantity": quantity,
                "unit_price": money(unit_price),
                "total": money(unit_price * quantity),
            }
        )
    return normalized


def purchase_totals(items: list[dict], tax_rate_pct) -> dict:
    subtotal = sum((to_decimal(item["total"]) for item in items), Decimal("0"))
    tax = round2(subtotal * to_decimal(tax_rate_pct) / HUNDRED)
    return {"subtotal": money(subtotal), "tax": money(tax), "total": money(subtotal + tax)}


def format_po_number(counter: int, now: datetime | None = None) -> str:
    return f"PO-{(now or datetime.utcnow()).strftime('%Y%m')}-{counter:04d}"


class PurchaseService:
    def __init__(self, db):
        self.db = db
        self.repo = PurchaseRepository(db)
        self.settings = TenantSettingsRepository(db)

    def _apply_items(self, purchase: Purchase, items: list[dict]) -> None:
        settings_row = self.settings.get_or_create(purchase.tenant_id)
        purchase.items = normalize_items(items)
        totals = purchase_totals(purchase.items, settings_row.tax_rate)
        purchase.subtotal = totals["subtotal"]
        purchase.tax = totals["tax"]
        purchase.total = totals["total"]

    def _next_po_number(self, tenant_id) -> str:
        settings_row = self.settings.get_or_create(tenant_id)
        counter = settings_row.po_counter or 1
        po_number = format_po_number(counter)
        while self.repo.po_number_exists(tenant_id, po_number):
            counter += 1
            po_number = format_po_number(counter)
        settings_row.po_counter = counter + 1
        return po_number

    def _check_po_number(self, tenant_id, po_number: str) -> str:
        po_number = po_number.strip()
        if self.repo.po_number_exists(tenant_id, po_number):
            raise AppError(
                ErrorCatalog.DUPLICATE_RESOURCE,
                details={"po_number": po_number},
                message="Purchase order number already exists",
            )
        return po_number

    def create(self, tenant_id, data: dict, *, created_by: str | None = None) -> Purchase:
        status = data.get("status") or "pending"
        if status not in PURCHASE_STATUSES:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"status": status}, message="Invalid purchase status")
        if data.get("po_number"):
            po_number = self._check_po_number(tenant_id, data["po_number"])
        else:
            po_number = self._next_po_number(tenant_id)
        purchase = Purchase(
            tenant_id=tenant_id,
            po_number=po_number,
            supplier_name=data["supplier_name"],
            supplier_contact=data.get("supplier_contact"),
            order_date=data.get("order_date") or datetime.utcnow(),
            status="pending",
            notes=data.get("notes"),
            created_by=created_by,
        )
        self._apply_items(purchase, data.get("items") or [])
        purchase = self.repo.create(purchase)
        if status != "pending":
            purchase = self.update(purchase, {"status": status})
        return purchase

    def update(self, purchase: Purchase, changes: dict) -> Purchase:
        status = changes.get("status")
        if status is not None and status not in PURCHASE_STATUSES:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"status": status}, message="Invalid purchase status")
        for key in ("supplier_name", "supplier_contact", "order_date", "notes"):
            if changes.get(key) is not None:
                setattr(purchase, key, changes[key])
        if changes.get("items") is not None:
            self._apply_items(purchase, changes["items"])

        # Stock is received once per purchase, however often the status flips.
        if status == "completed" and purchase.received_at is None:
            self._receive(purchase)
        if status is not None:
            purchase.status = status
        purchase.updated_at = datetime.utcnow()
        return self.repo.update(purchase)

    def _receive(self, purchase: Purchase) -> None:
        """Book the ordered quantities into inventory; committed with the status change."""
        if not purchase.items:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, message="No items found in purchase order")
        inventory = InventoryService(self.db)
        received = 0
        for item in purchase.items:
            quantity = int(item.get("quantity") or 0)
            if quantity <= 0:
                continue
            inventory.restock(
                purchase.tenant_id,
                sku=item.get("sku"),
                name=item.get("name"),
                quantity=quantity,
                unit_price=item.get("unit_price"),
                source=f"Purchase Order {purchase.po_number}",
            )
            received += quantity
        purchase.received_at = datetime.utcnow()
        log_json(
            logger,
            {
                "event": "purchase_received",
                "tenant_id": str(purchase.tenant_id),
                "po_number": purchase.po_number,
                "units": received,
            },
        )

    def import_rows(self, tenant_id, rows: list[dict], *, created_by: str | None = None) -> tuple[int, list[dict]]:
        """Record historical purchase orders as-is; imports never touch stock."""
        imported = 0
        errors = []
        seen: set[str] = set()
        for index, row in enumerate(rows, start=1):
            po_number = row["po_number"]
            if po_number in seen or self.repo.po_number_exists(tenant_id, po_number):
                errors.append({"row": index, "message": f"Purchase order {po_number} already exists"})
                continue
            status = (row.get("status") or "pending").lower()
            if status not in PURCHASE_STATUSES:
                errors.append({"row": index, "message": f"Invalid purchase status '{row.get('status')}'"})
                continue
            seen.add(po_number)
            now = datetime.utcnow()
            self.repo.add(
                Purchase(
                    tenant_id=tenant_id,
                    po_number=po_number,
                    supplier_name=row["supplier_name"],
                    supplier_contact=row.get("supplier_contact"),
                    order_date=row.get("order_date") or now,
                    status=status,
                    items=normalize_items(row.get("items") or []),
                    subtotal=row.get("subtotal") or 0,
                    tax=row.get("tax") or 0,
                    total=row.get("total") or 0,
                    notes=row.get("notes"),
                    received_at=now if status == "completed" else None,
                    created_by=created_by,
                )
            )
            imported += 1
        self.db.commit()
        return imported, errors
