# Overview: Flask API routes for order operations; parses input and returns JSON responses.

# backend/smartseller/routes/orders.py
"""
Order API routes.

Parsing happens here (JSON -> ProductLine / ComboLine, enums, amounts);
every rule about stock, pricing and status lives in order_service.
"""

from flask import Blueprint, request, jsonify, current_app

from ..models.orders import ORDER_STATUSES, PAYMENT_TYPES
from ..services import order_service
from ..services.errors import FulfillmentError
from ..validation import (
    ValidationError,
    optional_non_negative_amount,
    optional_string,
    parse_order_items,
    require_one_of,
)
from ..decorators import require_auth


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _error_response(e: Exception, action: str):
    if isinstance(e, ValidationError):
        return jsonify({"error": str(e)}), 400
    if isinstance(e, FulfillmentError):
        if e.status_code >= 409:
            current_app.logger.warning("%s rejected: %s %s", action, e, e.details)
        return jsonify(e.to_dict()), e.status_code
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Create an order.

    Body:
        customer_name, customer_phone: optional strings
        payment_type: "cash" | "credit"
        items: [{"item_type": "product", "product_id", "quantity"} |
                {"item_type": "combo", "combo_id", "quantity"}]
        discount, debt_amount: optional non-negative amounts
        include_delivery_fee: bool
        status: optional explicit status
    """
    try:
        data = request.get_json(silent=True) or {}
        payment_type = require_one_of(data.get("payment_type"), "payment_type", PAYMENT_TYPES)
        requested_status = (
            require_one_of(data.get("status"), "status", ORDER_STATUSES)
            if data.get("status") else None
        )

        order = order_service.create_order(
            customer_name=optional_string(data.get("customer_name")),
            customer_phone=optional_string(data.get("customer_phone")),
            payment_type=payment_type,
            items=parse_order_items(data.get("items")),
            discount=optional_non_negative_amount(data.get("discount"), "discount") or 0,
            include_delivery_fee=bool(data.get("include_delivery_fee")),
            debt_amount=optional_non_negative_amount(data.get("debt_amount"), "debt_amount") or 0,
            requested_status=requested_status,
        )
        return jsonify(order.to_dict(include_lines=True)), 201

    except Exception as e:
        return _error_response(e, "create order")


@orders_bp.get("")
@require_auth
def list_orders_route():
    try:
        status = request.args.get("status") or None
        orders = order_service.list_orders(status=status)
        return jsonify([o.to_dict(include_lines=True) for o in orders]), 200
    except Exception as e:
        return _error_response(e, "list orders")


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id)
        return jsonify(order.to_dict(include_lines=True)), 200
    except Exception as e:
        return _error_response(e, "get order")


@orders_bp.patch("/<int:order_id>/status")
@require_auth
def update_status_route(order_id: int):
    """Body: {"status": "pending" | "delivered" | "debt" | "credit"}"""
    try:
        data = request.get_json(silent=True) or {}
        new_status = require_one_of(data.get("status"), "status", ORDER_STATUSES)
        order = order_service.update_order_status(order_id, new_status)
        return jsonify(order.to_dict(include_lines=True)), 200
    except Exception as e:
        return _error_response(e, "update order status")


@orders_bp.post("/<int:order_id>/debt/paid")
@require_auth
def mark_debt_paid_route(order_id: int):
    try:
        order = order_service.mark_debt_paid(order_id)
        return jsonify(order.to_dict(include_lines=True)), 200
    except Exception as e:
        return _error_response(e, "settle debt")


@orders_bp.post("/<int:order_id>/credit/paid")
@require_auth
def mark_credit_paid_route(order_id: int):
    try:
        order = order_service.mark_credit_paid(order_id)
        return jsonify(order.to_dict(include_lines=True)), 200
    except Exception as e:
        return _error_response(e, "settle credit")


@orders_bp.delete("/<int:order_id>")
@require_auth
def delete_order_route(order_id: int):
    """Only delivered orders can be deleted; their stock is restored."""
    try:
        order_service.delete_order(order_id)
        return jsonify({"message": "Order deleted and stock restored"}), 200
    except Exception as e:
        return _error_response(e, "delete order")
