# Overview: Flask API routes for the market (shopping) checklist.

from flask import Blueprint, request, jsonify, current_app

from ..services import market_service
from ..services.errors import FulfillmentError
from ..validation import ValidationError
from ..decorators import require_auth


market_bp = Blueprint("market", __name__, url_prefix="/api/market")


def _json_error(exc: Exception, action: str):
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, FulfillmentError):
        return jsonify(exc.to_dict()), exc.status_code
    current_app.logger.exception("Failed to %s market item", action)
    return jsonify({"error": "Internal server error"}), 500


@market_bp.get("")
@require_auth
def list_items_route():
    """Optional ?status=open|done filter."""
    try:
        return jsonify(market_service.list_items(request.args.get("status") or None)), 200
    except Exception as e:
        return _json_error(e, "list")


@market_bp.post("")
@require_auth
def create_item_route():
    try:
        item = market_service.create_item(request.get_json(silent=True) or {})
        return jsonify(item), 201
    except Exception as e:
        return _json_error(e, "create")


@market_bp.put("/<int:item_id>")
@require_auth
def update_item_route(item_id: int):
    try:
        item = market_service.update_item(item_id, request.get_json(silent=True) or {})
        return jsonify(item), 200
    except Exception as e:
        return _json_error(e, "update")


@market_bp.delete("/<int:item_id>")
@require_auth
def delete_item_route(item_id: int):
    try:
        market_service.delete_item(item_id)
        return jsonify({"message": "Item deleted"}), 200
    except Exception as e:
        return _json_error(e, "delete")
