from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.repos.expenses import ExpenseRepository
from app.shopdesk.repos.products import ProductRepository
from app.shopdesk.repos.sales import SaleRepository
from app.shopdesk.services.cart import HUNDRED, money, to_decimal

DEFAULT_PERIOD_DAYS = 30
MAX_PERIOD_DAYS = 366
TOP_PRODUCTS = 10


@dataclass
class ProductPerformance:
    name: str
    quantity: int = 0
    revenue: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "revenue": money(self.revenue),
            "profit": money(self.profit),
        }


@dataclass(frozen=True)
class SalesSummary:
    days: int
    start_date: datetime
    end_date: datetime
    total_revenue: float
    total_profit: float
    total_expenses: float
    total_transactions: int
    profit_margin: float
    sales_growth: float
    profit_growth: float
    top_products: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def growth_pct(current: Decimal, previous: Decimal) -> float:
    """Percent change against the previous period; 0 when there is no positive baseline."""
    if previous <= 0:
        return 0.0
    return money((current - previous) / previous * HUNDRED)


def _item_key(item) -> str:
    return str(item.product_id) if item.product_id else f"name:{item.name}"


def gross_profit(sales: Iterable, cost_prices: dict[str, Decimal]) -> tuple[Decimal, dict[str, ProductPerformance]]:
    """Line revenue minus cost of goods, overall and per product."""
    products: dict[str, ProductPerformance] = {}
    total = Decimal("0")
    for sale in sales:
        for item in sale.items:
            key = _item_key(item)
            revenue = to_decimal(item.price) * item.quantity
            profit = revenue - cost_prices.get(key, Decimal("0")) * item.quantity
            performance = products.setdefault(key, ProductPerformance(name=item.name))
            performance.quantity += item.quantity
            performance.revenue += revenue
            performance.profit += profit
            total += profit
    return total, products


class AnalyticsService:
    def __init__(self, db):
        self.sales = SaleRepository(db)
        self.products = ProductRepository(db)
        self.expenses = ExpenseRepository(db)

    def _cost_prices(self, tenant_id, sales: list) -> dict[str, Decimal]:
        product_ids = {item.product_id for sale in sales for item in sale.items if item.product_id}
        products = self.products.get_many_in_tenant(list(product_ids), tenant_id)
        return {str(product.id): to_decimal(product.cost_price) for product in products.values()}

    def summary(self, tenant_id, days: int = DEFAULT_PERIOD_DAYS, *, now: datetime | None = None) -> SalesSummary:
        if not 1 <= days <= MAX_PERIOD_DAYS:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"days": days, "max": MAX_PERIOD_DAYS},
                message="Period must be between 1 and 366 days",
            )
        end = now or datetime.utcnow()
        start = end - timedelta(days=days)
        previous_start = start - timedelta(days=days)

        current_sales = self.sales.list_between(tenant_id, start, end)
        previous_sales = self.sales.list_between(tenant_id, previous_start, start)
        cost_prices = self._cost_prices(tenant_id, current_sales + previous_sales)

        revenue = sum((to_decimal(sale.total) for sale in current_sales), Decimal("0"))
        previous_revenue = sum((to_decimal(sale.total) for sale in previous_sales), Decimal("0"))
        expenses = to_decimal(self.expenses.total_between(tenant_id, start, end))
        previous_expenses = to_decimal(self.expenses.total_between(tenant_id, previous_start, start))

        profit, products = gross_profit(current_sales, cost_prices)
        profit -= expenses
        previous_profit, _ = gross_profit(previous_sales, cost_prices)
        previous_profit -= previous_expenses

        ranked = sorted(products.values(), key=lambda product: product.revenue, reverse=True)
        return SalesSummary(
            days=days,
            start_date=start,
            end_date=end,
            total_revenue=money(revenue),
            total_profit=money(profit),
            total_expenses=money(expenses),
            total_transactions=len(current_sales),
            profit_margin=money(profit / revenue * HUNDRED) if revenue > 0 else 0.0,
            sales_growth=growth_pct(revenue, previous_revenue),
            profit_growth=growth_pct(profit, previous_profit),
            top_products=[product.to_dict() for product in ranked[:TOP_PRODUCTS]],
        )
