from decimal import Decimal
from types import SimpleNamespace

import pytest

from smartseller.services import pricing_service
from smartseller.services.errors import DiscountExceeded, IncompatibleDebtCredit, InvalidCombo
from smartseller.services.requirements_service import ComboLine, Ingredient, ProductLine


def _product(name, price, cost):
    return SimpleNamespace(name=name, price=Decimal(price), cost_price=Decimal(cost))


PRODUCTS = {
    1: _product("Bun", "100.00", "40.00"),
    2: _product("Patty", "350.50", "200.25"),
    3: _product("Soda", "0.10", "0.05"),
}
COMBOS = {7: SimpleNamespace(id=7, name="Burger Menu")}
INGREDIENTS = {7: [Ingredient(1, 2), Ingredient(2, 1)]}


def test_product_line_snapshots_product_price_and_cost():
    [line] = pricing_service.price_lines([ProductLine(2, 3)], PRODUCTS, COMBOS, INGREDIENTS)
    assert line.item_type == "product"
    assert line.name == "Patty"
    assert line.unit_price == Decimal("350.50")
    assert line.unit_cost == Decimal("200.25")
    assert line.line_total == Decimal("1051.50")


def test_combo_line_is_priced_as_sum_of_ingredients():
    [line] = pricing_service.price_lines([ComboLine(7, 2)], PRODUCTS, COMBOS, INGREDIENTS)
    assert line.item_type == "combo"
    assert line.combo_id == 7
    assert line.name == "Burger Menu"
    assert line.unit_price == Decimal("550.50")
    assert line.unit_cost == Decimal("280.25")


def test_combo_line_without_ingredients_is_invalid():
    with pytest.raises(InvalidCombo):
        pricing_service.price_lines([ComboLine(7, 1)], PRODUCTS, COMBOS, {})


def test_subtotal_and_total():
    priced = pricing_service.price_lines(
        [ProductLine(1, 2), ProductLine(3, 3), ComboLine(7, 1)], PRODUCTS, COMBOS, INGREDIENTS
    )
    totals = pricing_service.compute_totals(priced, discount=Decimal("50"), delivery_fee=Decimal("100"))

    assert totals.subtotal == Decimal("750.80")
    assert totals.discount == Decimal("50.00")
    assert totals.delivery_fee == Decimal("100.00")
    assert totals.total == Decimal("800.80")


def test_discount_may_equal_half_the_subtotal():
    priced = pricing_service.price_lines([ProductLine(1, 1)], PRODUCTS, COMBOS, INGREDIENTS)
    totals = pricing_service.compute_totals(priced, discount=50, delivery_fee=0)
    assert totals.total == Decimal("50.00")
    assert totals.max_discount == Decimal("50.00")


def test_discount_above_half_reports_max():
    priced = pricing_service.price_lines([ProductLine(2, 1)], PRODUCTS, COMBOS, INGREDIENTS)
    with pytest.raises(DiscountExceeded) as exc:
        pricing_service.compute_totals(priced, discount=Decimal("175.26"), delivery_fee=0)
    assert exc.value.details == {"max_discount": 175.25}
    assert "50%" in str(exc.value)


def test_discount_cap_compares_unrounded_amount():
    priced = [
        pricing_service.PricedLine("product", 1, None, 1, "Wrap", Decimal("10.00"), Decimal("4.00")),
    ]
    with pytest.raises(DiscountExceeded) as exc:
        pricing_service.compute_totals(priced, discount=Decimal("5.004"), delivery_fee=0)
    assert exc.value.details == {"max_discount": 5.0}

    totals = pricing_service.compute_totals(priced, discount=Decimal("4.995"), delivery_fee=0)
    assert totals.discount == Decimal("5.00")
    assert totals.total == Decimal("5.00")


def test_total_never_negative():
    priced = [
        pricing_service.PricedLine("product", 1, None, 1, "Gift", Decimal("0.00"), Decimal("0.00")),
    ]
    totals = pricing_service.compute_totals(priced, discount=0, delivery_fee=0)
    assert totals.total == Decimal("0.00")


def test_delivery_fee_only_when_opted_in_and_never_negative():
    assert pricing_service.delivery_fee_for(False, 100) == Decimal("0.00")
    assert pricing_service.delivery_fee_for(True, 100) == Decimal("100.00")
    assert pricing_service.delivery_fee_for(True, -25) == Decimal("0.00")
    assert pricing_service.delivery_fee_for(True, 12.345) == Decimal("12.35")


def test_amount_paid_per_status():
    total = Decimal("1000.00")
    assert pricing_service.amount_paid_for("credit", total, 0) == Decimal("0.00")
    assert pricing_service.amount_paid_for("debt", total, Decimal("250")) == Decimal("1250.00")
    assert pricing_service.amount_paid_for("pending", total, 0) == total
    assert pricing_service.amount_paid_for("delivered", total, 0) == total


def test_credit_with_debt_is_incompatible():
    pricing_service.check_settlement_mode("cash", 100)
    pricing_service.check_settlement_mode("credit", 0)
    with pytest.raises(IncompatibleDebtCredit):
        pricing_service.check_settlement_mode("credit", Decimal("0.01"))
