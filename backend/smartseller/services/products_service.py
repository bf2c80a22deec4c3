# backend/smartseller/services/products_service.py
"""
Products Service

Catalogue CRUD. Stock is set directly here only when a product is created
or edited by the vendor (restocking); sales move stock exclusively through
inventory_service.

A product referenced by a combo ingredient or an order line cannot be
deleted: order snapshots keep their name and price, but the fulfillment
engine still resolves requirements against the product row.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import ComboIngredient, OrderLine, Product
from .concurrency import lock_for_update, run_in_unit_of_work
from .errors import ProductInUse, ProductNotFound

PRODUCT_MUTABLE_FIELDS = {"name", "price", "cost_price", "stock", "low_stock_threshold"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products() -> list[dict]:
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in products]


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFound("Product not found", details={"product_id": product_id})
    return product


def create_product(*, patch: dict) -> dict:
    """Create product from a validated patch dict (see validation.validate_payload)."""
    p = Product()
    apply_product_patch(p, patch)
    if p.cost_price is None:
        p.cost_price = 0
    if p.low_stock_threshold is None:
        p.low_stock_threshold = 5

    try:
        db.session.add(p)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Product %s created: %s (stock=%s)", p.id, p.name, p.stock)
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict:
    """
    Apply a partial update. Runs as a unit of work so a restock never
    interleaves with an order decrementing the same row.
    """
    def _op(session):
        p = lock_for_update(session.query(Product).filter_by(id=product_id)).first()
        if p is None:
            raise ProductNotFound("Product not found", details={"product_id": product_id})
        apply_product_patch(p, patch)
        session.flush()
        return p

    p = run_in_unit_of_work(_op)
    current_app.logger.info("Product %s updated: %s", p.id, ", ".join(sorted(patch)) or "no changes")
    return p.to_dict()


def product_reference_counts(session, product_id: int) -> dict[str, int]:
    combos = (
        session.query(func.count(ComboIngredient.id))
        .filter(ComboIngredient.product_id == product_id)
        .scalar()
    ) or 0
    orders = (
        session.query(func.count(OrderLine.id))
        .filter(OrderLine.product_id == product_id)
        .scalar()
    ) or 0
    return {"combos": combos, "orders": orders}


def delete_product(*, product_id: int) -> None:
    def _op(session):
        p = lock_for_update(session.query(Product).filter_by(id=product_id)).first()
        if p is None:
            raise ProductNotFound("Product not found", details={"product_id": product_id})

        refs = product_reference_counts(session, product_id)
        if refs["combos"] or refs["orders"]:
            raise ProductInUse(
                "Cannot delete this product because it is used in combos or orders.",
                details={"product_id": product_id, **refs},
            )
        session.delete(p)

    run_in_unit_of_work(_op)
    current_app.logger.info("Product %s deleted", product_id)
