# Overview: Expands order lines (products and combos) into per-product stock requirements.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from ..models import Combo, ComboIngredient, OrderLine
from ..models.orders import ITEM_COMBO, ITEM_PRODUCT
from .errors import InvalidCombo


@dataclass(frozen=True)
class ProductLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class ComboLine:
    combo_id: int
    quantity: int


LineRequest = Union[ProductLine, ComboLine]


@dataclass(frozen=True)
class Ingredient:
    product_id: int
    quantity: int


def line_from_order_line(line: OrderLine) -> LineRequest:
    """Rebuild the request variant from a persisted (snapshotted) line."""
    if line.item_type == ITEM_PRODUCT:
        return ProductLine(product_id=line.product_id, quantity=line.quantity)
    if line.item_type == ITEM_COMBO:
        return ComboLine(combo_id=line.combo_id, quantity=line.quantity)
    raise ValueError(f"unknown item_type {line.item_type!r}")


def load_combo_ingredients(session, combo_ids) -> dict[int, list[Ingredient]]:
    """Fetch ingredient lists for the given combos in one query."""
    ids = sorted({int(cid) for cid in combo_ids})
    if not ids:
        return {}

    rows = (
        session.query(ComboIngredient.combo_id, ComboIngredient.product_id, ComboIngredient.quantity)
        .filter(ComboIngredient.combo_id.in_(ids))
        .order_by(ComboIngredient.combo_id.asc(), ComboIngredient.position.asc())
        .all()
    )
    by_combo: dict[int, list[Ingredient]] = {}
    for combo_id, product_id, quantity in rows:
        by_combo.setdefault(combo_id, []).append(Ingredient(product_id=product_id, quantity=quantity))
    return by_combo


def load_combos(session, combo_ids) -> dict[int, Combo]:
    ids = sorted({int(cid) for cid in combo_ids})
    if not ids:
        return {}
    rows = session.query(Combo).filter(Combo.id.in_(ids)).all()
    return {c.id: c for c in rows}


def combo_ids_of(lines: Iterable[LineRequest]) -> set[int]:
    return {line.combo_id for line in lines if isinstance(line, ComboLine)}


def product_ids_of(lines: Iterable[LineRequest]) -> set[int]:
    return {line.product_id for line in lines if isinstance(line, ProductLine)}


def resolve_requirements(
    lines: Iterable[LineRequest],
    ingredients_by_combo: dict[int, list[Ingredient]],
) -> dict[int, int]:
    """
    Flatten lines into {product_id: total units required}.

    Contributions to the same product are summed across lines and combos,
    so the result does not depend on line order. Pure: the ingredient map
    is supplied by the caller.
    """
    requirements: dict[int, int] = {}

    def _add(product_id: int, qty: int) -> None:
        requirements[product_id] = requirements.get(product_id, 0) + qty

    for line in lines:
        match line:
            case ProductLine(product_id=product_id, quantity=quantity):
                _add(product_id, quantity)
            case ComboLine(combo_id=combo_id, quantity=quantity):
                ingredients = ingredients_by_combo.get(combo_id)
                if not ingredients:
                    raise InvalidCombo(
                        f"Combo {combo_id} has no ingredients",
                        details={"combo_id": combo_id},
                    )
                for ing in ingredients:
                    _add(ing.product_id, ing.quantity * quantity)
            case _:
                raise TypeError(f"unsupported order line {line!r}")

    return requirements


def compute_requirements(session, lines: list[LineRequest]) -> tuple[dict[int, int], dict[int, list[Ingredient]]]:
    """Load ingredient lists for the combos in ``lines`` and resolve."""
    ingredients_by_combo = load_combo_ingredients(session, combo_ids_of(lines))
    return resolve_requirements(lines, ingredients_by_combo), ingredients_by_combo
