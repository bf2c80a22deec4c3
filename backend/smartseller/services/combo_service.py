# Overview: Combo catalogue; availability derived from ingredient stock, plus create/update/delete.

"""
Combo Service

A combo owns no stock. How many can be sold right now is computed from
its ingredients every time:

    available_units = min(product.stock // ingredient.quantity)

and is 0 for a combo with no ingredients. Listing also reports the live
unit price / cost (sum over ingredients), the same figures an order line
would snapshot.

Creating or updating the ingredient list locks the ingredient products and
requires enough stock for at least one unit, so a combo is never defined
that could not be sold once.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Combo, ComboIngredient, OrderLine
from ..money_utils import as_float
from ..validation import ValidationError
from . import inventory_service
from .concurrency import lock_for_update, run_in_unit_of_work
from .errors import ComboInUse, ComboNotFound, DuplicateIngredient
from .pricing_service import combo_unit_amounts
from .requirements_service import Ingredient


def available_units(combo: Combo) -> int:
    ingredients = list(combo.ingredients)
    if not ingredients:
        return 0
    return min((ing.product.stock or 0) // ing.quantity for ing in ingredients)


def combo_to_dict(combo: Combo) -> dict:
    ingredients = list(combo.ingredients)
    products = {ing.product_id: ing.product for ing in ingredients}
    refs = [Ingredient(product_id=ing.product_id, quantity=ing.quantity) for ing in ingredients]
    unit_price, unit_cost = combo_unit_amounts(refs, products)

    data = combo.to_dict()
    data["items"] = [ing.to_dict() for ing in ingredients]
    data["available_units"] = available_units(combo)
    data["unit_price"] = as_float(unit_price)
    data["unit_cost"] = as_float(unit_cost)
    return data


def list_combos() -> list[dict]:
    combos = db.session.query(Combo).order_by(Combo.name.asc(), Combo.id.asc()).all()
    return [combo_to_dict(c) for c in combos]


def _check_duplicates(ingredients: list[Ingredient]) -> None:
    seen = set()
    for ing in ingredients:
        if ing.product_id in seen:
            raise DuplicateIngredient(
                "Duplicate ingredient in combo",
                details={"product_id": ing.product_id},
            )
        seen.add(ing.product_id)


def _lock_ingredient_products(session, ingredients: list[Ingredient], message: str):
    """Lock ingredient products and require stock for one unit of the combo."""
    products = inventory_service.lock_and_fetch(session, [ing.product_id for ing in ingredients])
    requirements = {ing.product_id: ing.quantity for ing in ingredients}
    inventory_service.check_sufficiency(products, requirements, message=message)
    return products


def _set_ingredients(combo: Combo, ingredients: list[Ingredient]) -> None:
    combo.ingredients = [
        ComboIngredient(product_id=ing.product_id, quantity=ing.quantity, position=idx)
        for idx, ing in enumerate(ingredients)
    ]


def _validate_ingredients(ingredients) -> list[Ingredient]:
    ingredients = list(ingredients or [])
    if not ingredients:
        raise ValidationError("Combo must include at least 1 ingredient")
    for idx, ing in enumerate(ingredients):
        if not isinstance(ing, Ingredient):
            raise ValidationError(f"items[{idx}] is not a combo ingredient")
        if ing.quantity <= 0:
            raise ValidationError(f"items[{idx}].quantity must be > 0")
    _check_duplicates(ingredients)
    return ingredients


def create_combo(name: str, ingredients: list[Ingredient]) -> Combo:
    """
    Create a combo from an ordered ingredient list.

    Raises:
        ValidationError: blank name or empty ingredient list
        DuplicateIngredient: same product listed twice
        ProductNotFound: unknown ingredient product
        InsufficientStock: not enough stock for one combo
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Missing or invalid name")
    ingredients = _validate_ingredients(ingredients)

    def _op(session):
        _lock_ingredient_products(session, ingredients, "Insufficient ingredients to create combo")
        combo = Combo(name=name)
        _set_ingredients(combo, ingredients)
        session.add(combo)
        session.flush()
        return combo

    combo = run_in_unit_of_work(_op)
    current_app.logger.info("Combo %s created with %d ingredients", combo.id, len(ingredients))
    return combo


def update_combo(combo_id: int, name: str | None = None, ingredients: list[Ingredient] | None = None) -> Combo:
    """
    Rename a combo and/or replace its ingredient list.

    Fields left as None are kept. A replacement ingredient list goes through
    the same checks as on create.
    """
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Missing or invalid name")
    if ingredients is not None:
        ingredients = _validate_ingredients(ingredients)

    def _op(session):
        combo = lock_for_update(session.query(Combo).filter_by(id=combo_id)).first()
        if combo is None:
            raise ComboNotFound("Combo not found", details={"combo_id": combo_id})

        if name is not None:
            combo.name = name
        if ingredients is not None:
            _lock_ingredient_products(session, ingredients, "Insufficient ingredients to update combo")
            combo.ingredients.clear()
            session.flush()
            _set_ingredients(combo, ingredients)
        session.flush()
        return combo

    combo = run_in_unit_of_work(_op)
    current_app.logger.info("Combo %s updated", combo.id)
    return combo


def combo_reference_count(session, combo_id: int) -> int:
    return (
        session.query(func.count(OrderLine.id))
        .filter(OrderLine.combo_id == combo_id)
        .scalar()
    ) or 0


def delete_combo(combo_id: int) -> None:
    """Delete a combo that no order line references."""
    def _op(session):
        combo = lock_for_update(session.query(Combo).filter_by(id=combo_id)).first()
        if combo is None:
            raise ComboNotFound("Combo not found", details={"combo_id": combo_id})
        if combo_reference_count(session, combo_id):
            raise ComboInUse(
                "Cannot delete this combo because it is used in orders.",
                details={"combo_id": combo_id},
            )
        session.delete(combo)

    run_in_unit_of_work(_op)
    current_app.logger.info("Combo %s deleted", combo_id)
