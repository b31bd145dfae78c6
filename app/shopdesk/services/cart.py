from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, TypeVar

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")

T = TypeVar("T")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def round2(value) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def money(value) -> float:
    return float(round2(value))


@dataclass
class CartLine:
    product_id: str
    name: str
    price: Decimal
    quantity: int = 1

    @property
    def total(self) -> Decimal:
        return round2(self.price * self.quantity)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": money(self.price),
            "quantity": self.quantity,
            "total": money(self.total),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "CartLine":
        return cls(
            product_id=str(payload.get("product_id") or payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            price=round2(payload.get("price")),
            quantity=int(payload.get("quantity") or 0),
        )


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    discount_amount: Decimal
    tax: Decimal
    total: Decimal

    def as_dict(self) -> dict:
        return {
            "subtotal": money(self.subtotal),
            "discount_amount": money(self.discount_amount),
            "tax": money(self.tax),
            "total": money(self.total),
        }


def calculate_totals(lines: Iterable[CartLine], discount_pct=0, tax_rate_pct=0) -> CartTotals:
    """Derive bill totals; the discount applies before tax."""
    subtotal = sum((line.total for line in lines), Decimal("0"))
    discount_amount = round2(subtotal * to_decimal(discount_pct) / HUNDRED)
    tax = round2((subtotal - discount_amount) * to_decimal(tax_rate_pct) / HUNDRED)
    return CartTotals(
        subtotal=round2(subtotal),
        discount_amount=discount_amount,
        tax=tax,
        total=round2(subtotal - discount_amount + tax),
    )


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)
    discount_pct: Decimal = Decimal("0")
    tax_rate_pct: Decimal = Decimal("0")
    customer_name: str = ""
    customer_phone: str = ""

    def _find(self, product_id: str) -> CartLine | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add_item(self, product) -> CartLine:
        product_id = str(product.id)
        line = self._find(product_id)
        if line is not None:
            line.quantity += 1
            return line
        line = CartLine(product_id=product_id, name=product.name, price=round2(product.price), quantity=1)
        self.lines.append(line)
        return line

    def set_quantity(self, product_id: str, quantity: int) -> None:
        if quantity < 0:
            raise ValueError("quantity must not be negative")
        if quantity == 0:
            self.remove_item(product_id)
            return
        line = self._find(str(product_id))
        if line is not None:
            line.quantity = quantity

    def edit_unit_price(self, product_id: str, new_price) -> None:
        price = round2(new_price)
        if price < 0:
            raise ValueError("price must not be negative")
        line = self._find(str(product_id))
        if line is not None:
            line.price = price

    def remove_item(self, product_id: str) -> None:
        self.lines = [line for line in self.lines if line.product_id != str(product_id)]

    def set_discount(self, discount_pct) -> None:
        value = to_decimal(discount_pct)
        if value < 0 or value > HUNDRED:
            raise ValueError("discount must be between 0 and 100")
        self.discount_pct = value

    def clear(self) -> None:
        self.lines = []
        self.discount_pct = Decimal("0")
        self.customer_name = ""
        self.customer_phone = ""

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def totals(self) -> CartTotals:
        return calculate_totals(self.lines, self.discount_pct, self.tax_rate_pct)


@dataclass(frozen=True)
class HeldBillSnapshot:
    hold_code: str
    items: tuple[CartLine, ...]
    discount_pct: Decimal
    customer_name: str
    customer_phone: str
    totals: CartTotals
    held_at_ms: int


def hold_code_for(epoch_ms: int) -> str:
    return f"HOLD-{epoch_ms}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class Register:
    """Reference model of the client-side till: one active cart plus locally parked bills.

    The API persists held bills per tenant; this class fixes the hold, resume
    and checkout rules the browser cart follows when it works offline.
    """

    def __init__(self, *, tax_rate_pct=0, clock: Callable[[], int] = _now_ms):
        self.cart = Cart(tax_rate_pct=to_decimal(tax_rate_pct))
        self.held: list[HeldBillSnapshot] = []
        self._clock = clock

    def hold(self) -> HeldBillSnapshot | None:
        if self.cart.is_empty:
            return None
        held_at = self._clock()
        taken = {snapshot.hold_code for snapshot in self.held}
        while hold_code_for(held_at) in taken:
            held_at += 1
        snapshot = HeldBillSnapshot(
            hold_code=hold_code_for(held_at),
            items=tuple(replace(line) for line in self.cart.lines),
            discount_pct=self.cart.discount_pct,
            customer_name=self.cart.customer_name,
            customer_phone=self.cart.customer_phone,
            totals=self.cart.totals,
            held_at_ms=held_at,
        )
        self.held.append(snapshot)
        self.cart.clear()
        return snapshot

    def resume(self, hold_code: str) -> Cart:
        snapshot = next((item for item in self.held if item.hold_code == hold_code), None)
        if snapshot is None:
            raise AppError(ErrorCatalog.HELD_BILL_NOT_FOUND, details={"hold_code": hold_code})
        self.held.remove(snapshot)
        self.cart.lines = [replace(line) for line in snapshot.items]
        self.cart.discount_pct = snapshot.discount_pct
        self.cart.customer_name = snapshot.customer_name
        self.cart.customer_phone = snapshot.customer_phone
        return self.cart

    def checkout(self, commit: Callable[[Cart], T]) -> T:
        """Run ``commit`` against the cart; the cart is cleared only if it succeeds."""
        if self.cart.is_empty:
            raise AppError(ErrorCatalog.CART_EMPTY)
        result = commit(self.cart)
        self.cart.clear()
        return result
