"""
Order Service - lifecycle of customer orders

Statuses: pending, delivered, debt, credit. There is no cancelled state;
a delivered order can be deleted, which gives its stock back.

STOCK RULES:
- Goods leave inventory ("hand-over") when an order first enters one of
  delivered / debt / credit. At creation that is immediate for those
  statuses; a pending order is handed over on its first transition into a
  fulfilled status.
- Moving between fulfilled statuses never touches stock again.
- Moving a fulfilled order back to pending does not touch stock either;
  only deleting a delivered order gives stock back.
- Deleting a delivered order restores the full resolved requirement.

Every mutating operation runs in one unit of work: locks, validation,
order rows and stock changes commit together or not at all.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Order, OrderLine
from ..models.orders import (
    FULFILLED_STATUSES,
    ORDER_STATUSES,
    PAYMENT_CREDIT,
    PAYMENT_TYPES,
    STATUS_CREDIT,
    STATUS_DEBT,
    STATUS_DELIVERED,
    STATUS_PENDING,
)
from ..money_utils import to_decimal
from ..validation import ValidationError
from smartseller.time_utils import utcnow
from . import inventory_service, pricing_service
from .concurrency import lock_for_update, run_in_unit_of_work
from .errors import EmptyOrder, InvalidCombo, NotDelivered, OrderNotFound, WrongStatus
from .report_session_service import get_or_create_active_session_id
from .requirements_service import (
    ComboLine,
    ProductLine,
    combo_ids_of,
    compute_requirements,
    line_from_order_line,
    load_combos,
    product_ids_of,
)
from .settings_service import get_delivery_fee


def is_fulfilled(status: str) -> bool:
    return status in FULFILLED_STATUSES


def resolve_status(payment_type: str, debt_amount, requested_status: str | None = None) -> str:
    """Requested status wins; else credit for credit payments; else debt if change is owed; else pending."""
    if requested_status:
        return requested_status
    if payment_type == PAYMENT_CREDIT:
        return STATUS_CREDIT
    if to_decimal(debt_amount) > 0:
        return STATUS_DEBT
    return STATUS_PENDING


def _validate_create_args(payment_type, items, discount, debt_amount, requested_status) -> None:
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError(f"payment_type must be one of {list(PAYMENT_TYPES)}")
    if requested_status is not None and requested_status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of {list(ORDER_STATUSES)}")
    if not items:
        raise EmptyOrder("Order must include at least 1 item")
    for idx, item in enumerate(items):
        if not isinstance(item, (ProductLine, ComboLine)):
            raise ValidationError(f"items[{idx}] is not a product or combo line")
        if item.quantity <= 0:
            raise ValidationError(f"items[{idx}].quantity must be > 0")
    if to_decimal(discount) < 0:
        raise ValidationError("discount must be >= 0")
    if to_decimal(debt_amount) < 0:
        raise ValidationError("debt_amount must be >= 0")


def _lock_order(session, order_id: int) -> Order:
    order = lock_for_update(session.query(Order).filter_by(id=order_id)).first()
    if order is None:
        raise OrderNotFound("Order not found", details={"order_id": order_id})
    return order


def _order_requirements(session, order: Order) -> dict[int, int]:
    lines = [line_from_order_line(line) for line in order.lines]
    requirements, _ = compute_requirements(session, lines)
    return requirements


def _mark_delivered(session, order: Order) -> None:
    order.status = STATUS_DELIVERED
    order.report_session_id = get_or_create_active_session_id(session)
    if order.delivered_at is None:
        order.delivered_at = utcnow()


# =============================================================================
# CREATION
# =============================================================================

def create_order(
    *,
    payment_type: str,
    items: list,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    discount=0,
    include_delivery_fee: bool = False,
    debt_amount=0,
    requested_status: str | None = None,
) -> Order:
    """
    Create an order with its snapshotted lines.

    Args:
        payment_type: cash or credit
        items: ProductLine / ComboLine values
        discount: absolute discount, at most half the items subtotal
        include_delivery_fee: add the configured delivery fee
        debt_amount: change the vendor still owes the customer (cash only)
        requested_status: explicit status overriding the default resolution

    Raises:
        EmptyOrder, InvalidCombo, ProductNotFound, InsufficientStock,
        DiscountExceeded, IncompatibleDebtCredit, StockConflict,
        ValidationError
    """
    _validate_create_args(payment_type, items, discount, debt_amount, requested_status)

    # Rejected before any lock is taken or row written
    pricing_service.check_settlement_mode(payment_type, debt_amount)

    items = list(items)
    status = resolve_status(payment_type, debt_amount, requested_status)
    ratio = current_app.config.get("MAX_DISCOUNT_RATIO", pricing_service.MAX_DISCOUNT_RATIO)

    def _op(session):
        combos = load_combos(session, combo_ids_of(items))
        missing_combos = sorted(combo_ids_of(items) - set(combos))
        if missing_combos:
            raise InvalidCombo(
                "One or more combos not found",
                details={"combo_ids": missing_combos},
            )

        requirements, ingredients_by_combo = compute_requirements(session, items)
        products = inventory_service.lock_and_fetch(
            session, product_ids_of(items) | set(requirements)
        )

        inventory_service.check_sufficiency(products, requirements)

        priced = pricing_service.price_lines(items, products, combos, ingredients_by_combo)
        configured_fee = get_delivery_fee(session) if include_delivery_fee else 0
        delivery_fee = pricing_service.delivery_fee_for(include_delivery_fee, configured_fee)
        totals = pricing_service.compute_totals(priced, discount, delivery_fee, ratio)
        amount_paid = pricing_service.amount_paid_for(status, totals.total, debt_amount)

        order = Order(
            customer_name=(customer_name or "").strip() or "Guest",
            customer_phone=(customer_phone or "").strip() or None,
            status=status,
            payment_type=payment_type,
            subtotal=totals.subtotal,
            discount=totals.discount,
            delivery_fee=totals.delivery_fee,
            total_amount=totals.total,
            amount_paid=amount_paid,
            report_session_id=get_or_create_active_session_id(session),
            delivered_at=utcnow() if status == STATUS_DELIVERED else None,
        )
        for line in priced:
            order.lines.append(OrderLine(
                item_type=line.item_type,
                product_id=line.product_id,
                combo_id=line.combo_id,
                quantity=line.quantity,
                name_at_time=line.name,
                unit_price_at_time=line.unit_price,
                unit_cost_at_time=line.unit_cost,
            ))
        session.add(order)
        session.flush()

        if is_fulfilled(status):
            inventory_service.reserve_stock(session, products, requirements)

        return order

    order = run_in_unit_of_work(_op)
    current_app.logger.info(
        "Order %s created: status=%s payment=%s total=%s",
        order.id, order.status, order.payment_type, order.total_amount,
    )
    return order


# =============================================================================
# TRANSITIONS
# =============================================================================

def update_order_status(order_id: int, new_status: str) -> Order:
    """
    Move an order to ``new_status``.

    Entering a fulfilled status from pending hands the goods over (stock
    decrement for the whole order). Entering delivered assigns the active
    report session and stamps delivered_at once. Moving a fulfilled order
    back to pending leaves stock as it is.
    """
    if new_status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of {list(ORDER_STATUSES)}")

    def _op(session):
        order = _lock_order(session, order_id)
        old_status = order.status

        if not is_fulfilled(old_status) and is_fulfilled(new_status):
            requirements = _order_requirements(session, order)
            products = inventory_service.lock_and_fetch(session, requirements)
            inventory_service.reserve_stock(
                session, products, requirements,
                message="Insufficient stock to fulfill order",
            )

        if new_status == STATUS_DELIVERED:
            _mark_delivered(session, order)
        else:
            order.status = new_status
        return order, old_status

    order, old_status = run_in_unit_of_work(_op)
    current_app.logger.info("Order %s status %s -> %s", order.id, old_status, order.status)
    return order


def mark_debt_paid(order_id: int) -> Order:
    """Vendor handed the owed change back: debt -> delivered. amount_paid is kept."""
    def _op(session):
        order = _lock_order(session, order_id)
        if order.status != STATUS_DEBT:
            raise WrongStatus(
                "Order is not in debt status",
                details={"order_id": order_id, "status": order.status, "expected": STATUS_DEBT},
            )
        _mark_delivered(session, order)
        return order

    order = run_in_unit_of_work(_op)
    current_app.logger.info("Order %s debt settled", order.id)
    return order


def mark_credit_paid(order_id: int) -> Order:
    """Customer paid in full: credit -> delivered with amount_paid = total_amount."""
    def _op(session):
        order = _lock_order(session, order_id)
        if order.status != STATUS_CREDIT:
            raise WrongStatus(
                "Order is not in credit status",
                details={"order_id": order_id, "status": order.status, "expected": STATUS_CREDIT},
            )
        order.amount_paid = order.total_amount
        _mark_delivered(session, order)
        return order

    order = run_in_unit_of_work(_op)
    current_app.logger.info("Order %s credit settled", order.id)
    return order


def delete_order(order_id: int) -> None:
    """Delete a delivered order and restore the stock it consumed."""
    def _op(session):
        order = _lock_order(session, order_id)
        if order.status != STATUS_DELIVERED:
            raise NotDelivered(
                "Only delivered orders can be deleted",
                details={"order_id": order_id, "status": order.status},
            )

        requirements = _order_requirements(session, order)
        inventory_service.lock_and_fetch(session, requirements)
        inventory_service.restore_stock(session, requirements)

        session.delete(order)
        return requirements

    restored = run_in_unit_of_work(_op)
    current_app.logger.info("Order %s deleted; restored %s", order_id, restored)


# =============================================================================
# READS
# =============================================================================

def list_orders(status: str | None = None) -> list[Order]:
    if status is not None and status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of {list(ORDER_STATUSES)}")
    query = db.session.query(Order)
    if status:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound("Order not found", details={"order_id": order_id})
    return order
