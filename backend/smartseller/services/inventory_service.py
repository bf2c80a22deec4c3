# Overview: Inventory ledger; the only code path that mutates Product.stock.

# backend/smartseller/services/inventory_service.py

from __future__ import annotations

from flask import current_app

from ..models import Product
from .concurrency import lock_for_update
from .errors import InsufficientStock, ProductNotFound, StockConflict
"""
SmartSeller Inventory Invariants (authoritative)

- Product.stock is a stored counter and never goes negative.
- Stock is only changed through try_decrement / increment below; nothing
  else issues a read-modify-write on the column.
- Every caller passes the unit-of-work session explicitly; locks taken by
  lock_and_fetch last until that session commits or rolls back.
- Locks are acquired in one batch, ordered by product id, so two
  operations over overlapping product sets cannot deadlock each other.
- Stock is validated for every affected product before any decrement;
  an order never leaves a partial decrement behind.
"""


def lock_and_fetch(session, product_ids) -> dict[int, Product]:
    """
    Acquire exclusive row access on the given products and return them by id.

    Raises ProductNotFound listing every id that does not exist.
    """
    ids = sorted({int(pid) for pid in product_ids})
    if not ids:
        return {}

    query = (
        session.query(Product)
        .filter(Product.id.in_(ids))
        .order_by(Product.id.asc())
    )
    rows = lock_for_update(query).all()
    by_id = {p.id: p for p in rows}

    missing = [pid for pid in ids if pid not in by_id]
    if missing:
        raise ProductNotFound(
            "One or more products not found",
            details={"product_ids": missing},
        )
    return by_id


def try_decrement(session, product_id: int, amount: int) -> bool:
    """
    Atomically subtract ``amount`` only if stock >= amount.

    Single compare-and-subtract UPDATE; True iff exactly one row changed.
    """
    updated = (
        session.query(Product)
        .filter(Product.id == product_id, Product.stock >= amount)
        .update(
            {Product.stock: Product.stock - amount},
            synchronize_session=False,
        )
    )
    return updated == 1


def increment(session, product_id: int, amount: int) -> None:
    """Unconditionally add ``amount`` back to stock."""
    session.query(Product).filter(Product.id == product_id).update(
        {Product.stock: Product.stock + amount},
        synchronize_session=False,
    )


def find_shortfalls(products: dict[int, Product], requirements: dict[int, int]) -> list[dict]:
    shortfalls = []
    for product_id in sorted(requirements):
        required = requirements[product_id]
        product = products[product_id]
        in_stock = int(product.stock or 0)
        if in_stock < required:
            shortfalls.append({
                "product_id": product_id,
                "name": product.name,
                "required": required,
                "in_stock": in_stock,
            })
    return shortfalls


def check_sufficiency(
    products: dict[int, Product],
    requirements: dict[int, int],
    message: str = "Insufficient stock",
) -> None:
    """Raise InsufficientStock naming every short product; mutates nothing."""
    shortfalls = find_shortfalls(products, requirements)
    if shortfalls:
        raise InsufficientStock(message, details={"insufficient": shortfalls})


def reserve_stock(
    session,
    products: dict[int, Product],
    requirements: dict[int, int],
    message: str = "Insufficient stock",
) -> None:
    """
    Hand goods over: validate everything, then decrement everything.

    ``products`` must come from lock_and_fetch in the same unit of work.
    A failed conditional decrement means another writer got there first;
    StockConflict aborts the whole unit of work.
    """
    check_sufficiency(products, requirements, message=message)

    for product_id in sorted(requirements):
        qty = requirements[product_id]
        if not try_decrement(session, product_id, qty):
            current_app.logger.warning(
                "Stock conflict on product %s (needed %s)", product_id, qty
            )
            raise StockConflict(
                "Stock changed; please retry",
                details={"product_id": product_id, "required": qty},
            )


def restore_stock(session, requirements: dict[int, int]) -> None:
    """Give reserved units back, in the same stable order they were taken."""
    for product_id in sorted(requirements):
        increment(session, product_id, requirements[product_id])
