# Overview: Pricing engine; line snapshots, discount cap, delivery fee, totals and settlement amount.

"""
Pricing rules

- Product line: unit price/cost are the product's own price / cost_price.
- Combo line: unit price/cost are the live sum of ingredient price/cost
  times ingredient quantity. There is no stored combo price and therefore
  no margin on combos.
- subtotal = round2(sum(unit_price * qty))
- discount <= round2(subtotal * MAX_DISCOUNT_RATIO)
- total = round2(max(0, subtotal - discount + delivery_fee))
- amount_paid: credit -> 0, debt -> total + debt_amount, otherwise total
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..models.orders import (
    ITEM_COMBO,
    ITEM_PRODUCT,
    PAYMENT_CREDIT,
    STATUS_CREDIT,
    STATUS_DEBT,
)
from ..money_utils import ZERO, money_sum, round2, to_decimal
from .errors import DiscountExceeded, IncompatibleDebtCredit, InvalidCombo
from .requirements_service import ComboLine, ProductLine

MAX_DISCOUNT_RATIO = Decimal("0.5")


@dataclass(frozen=True)
class PricedLine:
    item_type: str
    product_id: int | None
    combo_id: int | None
    quantity: int
    name: str
    unit_price: Decimal
    unit_cost: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount: Decimal
    delivery_fee: Decimal
    total: Decimal
    max_discount: Decimal


def combo_unit_amounts(ingredients, products) -> tuple[Decimal, Decimal]:
    """(unit_price, unit_cost) of one combo unit from current ingredient products."""
    price = money_sum(to_decimal(products[ing.product_id].price) * ing.quantity for ing in ingredients)
    cost = money_sum(to_decimal(products[ing.product_id].cost_price) * ing.quantity for ing in ingredients)
    return round2(price), round2(cost)


def price_lines(lines, products, combos, ingredients_by_combo) -> list[PricedLine]:
    """
    Snapshot name, unit price and unit cost for every requested line.

    ``products`` must hold every product referenced directly or through a
    combo (normally the locked rows from inventory_service.lock_and_fetch).
    """
    priced: list[PricedLine] = []
    for line in lines:
        match line:
            case ProductLine(product_id=product_id, quantity=quantity):
                product = products[product_id]
                priced.append(PricedLine(
                    item_type=ITEM_PRODUCT,
                    product_id=product_id,
                    combo_id=None,
                    quantity=quantity,
                    name=product.name,
                    unit_price=round2(product.price),
                    unit_cost=round2(product.cost_price),
                ))
            case ComboLine(combo_id=combo_id, quantity=quantity):
                combo = combos.get(combo_id)
                ingredients = ingredients_by_combo.get(combo_id)
                if combo is None or not ingredients:
                    raise InvalidCombo(
                        f"Combo {combo_id} has no ingredients",
                        details={"combo_id": combo_id},
                    )
                unit_price, unit_cost = combo_unit_amounts(ingredients, products)
                priced.append(PricedLine(
                    item_type=ITEM_COMBO,
                    product_id=None,
                    combo_id=combo_id,
                    quantity=quantity,
                    name=combo.name,
                    unit_price=unit_price,
                    unit_cost=unit_cost,
                ))
            case _:
                raise TypeError(f"unsupported order line {line!r}")
    return priced


def delivery_fee_for(include_delivery_fee: bool, configured_fee) -> Decimal:
    """Configured fee floored at zero when opted in, else zero."""
    if not include_delivery_fee:
        return ZERO
    return round2(max(to_decimal(configured_fee), Decimal("0")))


def compute_totals(
    priced: list[PricedLine],
    discount,
    delivery_fee,
    max_discount_ratio=MAX_DISCOUNT_RATIO,
) -> OrderTotals:
    subtotal = round2(money_sum(line.line_total for line in priced))
    max_discount = round2(subtotal * to_decimal(max_discount_ratio))

    # Cap applies to the amount as given, before rounding
    if to_decimal(discount) > max_discount:
        raise DiscountExceeded(
            f"Discount cannot exceed {float(max_discount_ratio) * 100:g}% of items subtotal",
            details={"max_discount": float(max_discount)},
        )
    discount = round2(discount)

    delivery_fee = round2(delivery_fee)
    total = round2(max(Decimal("0"), subtotal - discount + delivery_fee))
    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        delivery_fee=delivery_fee,
        total=total,
        max_discount=max_discount,
    )


def check_settlement_mode(payment_type: str, debt_amount) -> None:
    """Debt (change owed) and credit (nothing paid) are mutually exclusive."""
    if payment_type == PAYMENT_CREDIT and to_decimal(debt_amount) > 0:
        raise IncompatibleDebtCredit(
            "Debt amount not allowed for credit orders",
            details={"payment_type": payment_type, "debt_amount": float(round2(debt_amount))},
        )


def amount_paid_for(status: str, total: Decimal, debt_amount) -> Decimal:
    if status == STATUS_CREDIT:
        return ZERO
    if status == STATUS_DEBT:
        return round2(to_decimal(total) + to_decimal(debt_amount))
    return round2(total)
