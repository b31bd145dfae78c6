from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.logging import log_json
from app.shopdesk.core.metrics import metrics
from app.shopdesk.db.models import Customer, Sale, SaleItem
from app.shopdesk.repos.customers import CustomerRepository
from app.shopdesk.repos.products import ProductRepository
from app.shopdesk.repos.sales import SaleRepository
from app.shopdesk.repos.tenant_config import TenantSettingsRepository
from app.shopdesk.services.cart import CartLine, calculate_totals, money, round2, to_decimal

logger = logging.getLogger(__name__)

WALK_IN_CUSTOMER = "Walk-in Customer"
PAYMENT_METHODS = ("cash", "card", "upi", "wallet", "credit", "other")


@dataclass
class CheckoutLine:
    product_id: str
    quantity: int
    price: Decimal | None = None


@dataclass
class CheckoutRequest:
    lines: list[CheckoutLine]
    discount_pct: Decimal = Decimal("0")
    tax_rate_pct: Decimal | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    payment_method: str = "cash"
    staff_member: str | None = None
    cashier: str | None = None


def format_bill_no(prefix: str | None, counter: int) -> str:
    return f"{prefix or 'BILL'}-{counter:03d}"


class CheckoutService:
    """Commit a cart as an immutable sale.

    Totals are always recomputed here from product prices (or the cashier's
    unit-price overrides) and the store tax rate; client-sent totals are not
    trusted. Nothing is written unless every line has enough stock.
    """

    def __init__(self, db):
        self.db = db
        self.products = ProductRepository(db)
        self.sales = SaleRepository(db)
        self.customers = CustomerRepository(db)
        self.settings = TenantSettingsRepository(db)

    def _resolve_lines(self, tenant_id, request: CheckoutRequest) -> tuple[list[CartLine], dict]:
        requested: OrderedDict[str, int] = OrderedDict()
        for line in request.lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        products = self.products.get_many_in_tenant([uuid.UUID(pid) for pid in requested], tenant_id)
        by_id = {str(product.id): product for product in products.values()}
        for product_id, quantity in requested.items():
            product = by_id.get(product_id)
            if product is None:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"product_id": product_id},
                    message=f"Product {product_id} not found in inventory",
                )
            if product.stock < quantity:
                raise AppError(
                    ErrorCatalog.INSUFFICIENT_STOCK,
                    details={"product_id": product_id, "requested": quantity, "available": product.stock},
                    message=f"Insufficient stock for {product.name}. Available: {product.stock}",
                )

        cart_lines = []
        for line in request.lines:
            product = by_id[line.product_id]
            price = round2(line.price) if line.price is not None else round2(product.price)
            cart_lines.append(CartLine(product_id=line.product_id, name=product.name, price=price, quantity=line.quantity))
        return cart_lines, by_id

    def _next_bill_no(self, tenant_id, settings_row) -> str:
        counter = settings_row.bill_counter or 1
        bill_no = format_bill_no(settings_row.bill_prefix, counter)
        while self.sales.bill_no_exists(tenant_id, bill_no):
            counter += 1
            bill_no = format_bill_no(settings_row.bill_prefix, counter)
        settings_row.bill_counter = counter + 1
        return bill_no

    def commit(self, tenant_id, request: CheckoutRequest, *, trace_id: str | None = None) -> Sale:
        if not request.lines:
            raise AppError(ErrorCatalog.CART_EMPTY)
        cart_lines, products = self._resolve_lines(tenant_id, request)

        settings_row = self.settings.get_or_create(tenant_id)
        tax_rate = request.tax_rate_pct if request.tax_rate_pct is not None else to_decimal(settings_row.tax_rate)
        totals = calculate_totals(cart_lines, request.discount_pct, tax_rate)

        for line in cart_lines:
            products[line.product_id].stock -= line.quantity
            products[line.product_id].updated_at = datetime.utcnow()

        sale = Sale(
            tenant_id=tenant_id,
            bill_no=self._next_bill_no(tenant_id, settings_row),
            customer_name=(request.customer_name or "").strip() or WALK_IN_CUSTOMER,
            customer_phone=(request.customer_phone or "").strip() or None,
            staff_member=request.staff_member or request.cashier,
            cashier=request.cashier,
            subtotal=money(totals.subtotal),
            discount=money(request.discount_pct),
            discount_amount=money(totals.discount_amount),
            tax_rate=money(tax_rate),
            tax=money(totals.tax),
            total=money(totals.total),
            payment_method=request.payment_method or "cash",
            store_name=settings_row.store_name,
            store_address=settings_row.address,
            store_phone=settings_row.phone,
            store_gst=settings_row.gst,
            terms=settings_row.terms,
            created_at=datetime.utcnow(),
        )
        sale.items = [
            SaleItem(
                product_id=uuid.UUID(line.product_id),
                position=position,
                name=line.name,
                price=money(line.price),
                quantity=line.quantity,
                total=money(line.total),
            )
            for position, line in enumerate(cart_lines)
        ]
        self.sales.add(sale)
        self.db.commit()
        self.db.refresh(sale)

        metrics.increment_sales_created(sale.payment_method)
        log_json(
            logger,
            {
                "event": "sale_committed",
                "trace_id": trace_id,
                "tenant_id": str(tenant_id),
                "sale_id": str(sale.id),
                "bill_no": sale.bill_no,
                "total": sale.total,
            },
        )
        self.record_customer_visit(tenant_id, sale)
        return sale

    def record_customer_visit(self, tenant_id, sale: Sale) -> None:
        """Best-effort customer bookkeeping; a failure here never undoes the sale."""
        if sale.customer_name == WALK_IN_CUSTOMER and not sale.customer_phone:
            return
        try:
            customer = self.customers.find_for_sale(tenant_id, phone=sale.customer_phone, name=sale.customer_name)
            if customer is None:
                customer = Customer(
                    tenant_id=tenant_id,
                    name=sale.customer_name,
                    phone=sale.customer_phone,
                    order_count=0,
                    total_spent=0,
                )
            customer.order_count = (customer.order_count or 0) + 1
            customer.total_spent = money(to_decimal(customer.total_spent) + to_decimal(sale.total))
            customer.last_order_date = sale.created_at
            customer.updated_at = datetime.utcnow()
            self.customers.update(customer)
        except Exception:
            self.db.rollback()
            logger.exception("Failed to update customer after sale", extra={"sale_id": str(sale.id)})


def implied_tax_rate(subtotal: Decimal, discount_amount: Decimal, tax: Decimal) -> float:
    """Tax percent implied by an imported bill's amounts; 0 when nothing is taxable."""
    taxable = subtotal - discount_amount
    if taxable <= 0:
        return 0.0
    return money(tax / taxable * 100)


def import_bills(db, tenant_id, rows: list[dict]) -> tuple[int, list[dict]]:
    """Recreate historical bills from parsed CSV rows without touching stock."""
    repo = SaleRepository(db)
    imported = 0
    errors = []
    seen: set[str] = set()
    for index, row in enumerate(rows, start=1):
        bill_no = row["bill_no"]
        if bill_no in seen or repo.bill_no_exists(tenant_id, bill_no):
            errors.append({"row": index, "message": f"Bill {bill_no} already exists"})
            continue
        seen.add(bill_no)
        subtotal = to_decimal(row.get("subtotal") or 0)
        discount_amount = to_decimal(row.get("discount_amount") or 0)
        tax = to_decimal(row.get("tax") or 0)
        sale = Sale(
            tenant_id=tenant_id,
            bill_no=bill_no,
            customer_name=row.get("customer_name") or WALK_IN_CUSTOMER,
            customer_phone=row.get("customer_phone"),
            staff_member=row.get("staff_member"),
            subtotal=row.get("subtotal") or 0,
            discount=row.get("discount") or 0,
            discount_amount=row.get("discount_amount") or 0,
            tax_rate=implied_tax_rate(subtotal, discount_amount, tax),
            tax=row.get("tax") or 0,
            total=row.get("total") or 0,
            payment_method=row.get("payment_method") or "cash",
            created_at=row.get("created_at") or datetime.utcnow(),
        )
        sale.items = [
            SaleItem(
                position=position,
                name=item["name"],
                price=item["price"],
                quantity=item["quantity"],
                total=item["total"],
            )
            for position, item in enumerate(row.get("items") or [])
        ]
        repo.add(sale)
        imported += 1
    db.commit()
    return imported, errors
