from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.shopdesk.core.error_catalog import AppError
from app.shopdesk.services.cart import Cart, CartLine, Register, calculate_totals, round2


def _product(product_id, price, name=None):
    return SimpleNamespace(id=product_id, name=name or f"Item {product_id}", price=price)


def test_reference_bill_totals():
    totals = calculate_totals(
        [CartLine(product_id="p1", name="Kurti", price=Decimal("100"), quantity=2)],
        discount_pct=10,
        tax_rate_pct=5,
    )

    assert totals.as_dict() == {"subtotal": 200.0, "discount_amount": 20.0, "tax": 9.0, "total": 189.0}


def test_subtotal_tracks_every_cart_edit():
    cart = Cart()
    cart.add_item(_product("a", "19.99"))
    cart.add_item(_product("b", "5.50"))
    cart.add_item(_product("a", "19.99"))
    cart.set_quantity("b", 3)
    cart.edit_unit_price("a", "18.75")
    cart.add_item(_product("c", "0.10"))
    cart.remove_item("c")

    assert [line.quantity for line in cart.lines] == [2, 3]
    assert cart.totals.subtotal == sum(line.total for line in cart.lines)
    assert cart.totals.subtotal == Decimal("54.00")


def test_discount_applies_before_tax_with_half_up_rounding():
    lines = [CartLine(product_id="p", name="Scarf", price=Decimal("33.33"), quantity=1)]
    totals = calculate_totals(lines, discount_pct="12.5", tax_rate_pct="18")

    assert totals.discount_amount == round2(Decimal("33.33") * Decimal("12.5") / 100)
    assert totals.tax == round2((totals.subtotal - totals.discount_amount) * Decimal("18") / 100)
    assert totals.total == totals.subtotal - totals.discount_amount + totals.tax


def test_set_quantity_zero_removes_line():
    cart = Cart()
    cart.add_item(_product("a", 10))
    cart.set_quantity("a", 0)

    assert cart.is_empty
    assert cart.totals.total == Decimal("0.00")


def test_invalid_edits_are_rejected():
    cart = Cart()
    cart.add_item(_product("a", 10))

    with pytest.raises(ValueError):
        cart.set_quantity("a", -1)
    with pytest.raises(ValueError):
        cart.edit_unit_price("a", -5)
    with pytest.raises(ValueError):
        cart.set_discount(101)


def test_hold_then_resume_restores_snapshot_once():
    register = Register(tax_rate_pct=5, clock=lambda: 1700000000000)
    register.cart.add_item(_product("a", 100))
    register.cart.set_quantity("a", 2)
    register.cart.set_discount(10)
    register.cart.customer_name = "Asha"

    snapshot = register.hold()

    assert snapshot.hold_code == "HOLD-1700000000000"
    assert snapshot.totals.total == Decimal("189.00")
    assert register.cart.is_empty

    cart = register.resume(snapshot.hold_code)
    assert [(line.product_id, line.quantity) for line in cart.lines] == [("a", 2)]
    assert cart.discount_pct == Decimal("10")
    assert cart.customer_name == "Asha"
    assert register.held == []

    with pytest.raises(AppError) as exc:
        register.resume(snapshot.hold_code)
    assert exc.value.error.code == "HELD_BILL_NOT_FOUND"


def test_hold_codes_stay_unique_within_the_same_millisecond():
    register = Register(clock=lambda: 42)
    register.cart.add_item(_product("a", 1))
    first = register.hold()
    register.cart.add_item(_product("b", 1))
    second = register.hold()

    assert first.hold_code == "HOLD-42"
    assert second.hold_code == "HOLD-43"


def test_hold_on_empty_cart_is_noop():
    register = Register()

    assert register.hold() is None
    assert register.held == []


def test_checkout_keeps_cart_when_commit_fails():
    register = Register()
    register.cart.add_item(_product("a", 10))

    def failing_commit(cart):
        raise RuntimeError("database down")

    with pytest.raises(RuntimeError):
        register.checkout(failing_commit)
    assert not register.cart.is_empty

    result = register.checkout(lambda cart: cart.totals.total)
    assert result == Decimal("10.00")
    assert register.cart.is_empty


def test_checkout_empty_cart_fails():
    with pytest.raises(AppError) as exc:
        Register().checkout(lambda cart: None)
    assert exc.value.error.code == "CART_EMPTY"
