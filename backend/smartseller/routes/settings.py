from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app

from ..decorators import require_auth
from ..services import session_service, settings_service
from ..services.settings_service import SettingsValidationError
from ..validation import ValidationError, require_string


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


def _json_error(message: str, status: int):
    return jsonify({"error": message}), status


@settings_bp.get("")
@require_auth
def get_settings_route():
    """All settings as one object; unset known keys carry their defaults."""
    try:
        return jsonify(settings_service.get_settings()), 200
    except Exception:
        current_app.logger.exception("Failed to load settings")
        return _json_error("Internal server error", 500)


@settings_bp.post("")
@require_auth
def update_settings_route():
    """Upsert every key of the JSON object body."""
    payload = request.get_json(silent=True)
    try:
        return jsonify(settings_service.update_settings(payload)), 200
    except SettingsValidationError as exc:
        return _json_error(str(exc), 400)
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return _json_error("Internal server error", 500)


@settings_bp.post("/reset")
@require_auth
def reset_system_route():
    """
    Wipe all data and start over with default settings.

    Body: {"password": <vendor password>}. The current token stops working
    because vendor sessions are wiped too.
    """
    data = request.get_json(silent=True) or {}
    try:
        require_string(data.get("password"), "password")
    except ValidationError as exc:
        return _json_error(str(exc), 400)

    if not session_service.check_password(data["password"]):
        current_app.logger.warning("System reset refused: wrong password")
        return _json_error("Invalid password", 401)

    try:
        settings_service.reset_system()
        return jsonify({"message": "System reset successfully"}), 200
    except Exception:
        current_app.logger.exception("Failed to reset system")
        return _json_error("Failed to reset system", 500)
