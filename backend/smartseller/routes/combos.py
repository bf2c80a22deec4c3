# Overview: Flask API routes for combo bundles; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import combo_service
from ..services.errors import FulfillmentError
from ..validation import ValidationError, parse_combo_ingredients, require_string
from ..decorators import require_auth


combos_bp = Blueprint("combos", __name__, url_prefix="/api/combos")


@combos_bp.get("")
@require_auth
def list_combos_route():
    """Combos with their ingredients, available_units, unit_price and unit_cost."""
    try:
        return jsonify(combo_service.list_combos()), 200
    except Exception:
        current_app.logger.exception("Failed to list combos")
        return jsonify({"error": "Internal server error"}), 500


@combos_bp.post("")
@require_auth
def create_combo_route():
    """
    Body: {"name": str, "items": [{"product_id": int, "quantity": int}, ...]}
    """
    try:
        data = request.get_json(silent=True) or {}
        name = require_string(data.get("name"), "name")
        ingredients = parse_combo_ingredients(data.get("items"))

        combo = combo_service.create_combo(name, ingredients)
        return jsonify(combo_service.combo_to_dict(combo)), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except FulfillmentError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create combo")
        return jsonify({"error": "Internal server error"}), 500


@combos_bp.put("/<int:combo_id>")
@require_auth
def update_combo_route(combo_id: int):
    """Either key may be omitted; omitted fields are kept."""
    try:
        data = request.get_json(silent=True) or {}
        name = require_string(data["name"], "name") if "name" in data else None
        ingredients = parse_combo_ingredients(data["items"]) if "items" in data else None

        combo = combo_service.update_combo(combo_id, name=name, ingredients=ingredients)
        return jsonify(combo_service.combo_to_dict(combo)), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except FulfillmentError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update combo")
        return jsonify({"error": "Internal server error"}), 500


@combos_bp.delete("/<int:combo_id>")
@require_auth
def delete_combo_route(combo_id: int):
    try:
        combo_service.delete_combo(combo_id)
        return jsonify({"message": "Combo deleted successfully"}), 200
    except FulfillmentError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete combo")
        return jsonify({"error": "Internal server error"}), 500
