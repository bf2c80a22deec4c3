# Overview: Flask API routes for vendor login and logout.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import session_service
from ..services.session_service import InvalidCredentials
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Exchange the vendor password for a bearer token.

    The token must be sent as ``Authorization: Bearer <token>`` on every
    other /api route.
    """
    try:
        data = request.get_json(silent=True) or {}
        password = data.get("password")

        if not password:
            return jsonify({"error": "password required"}), 400

        session, token = session_service.login(
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        ttl_hours = int(current_app.config.get("SESSION_TTL_HOURS", 12))
        return jsonify({
            "token": token,
            "expiresIn": f"{ttl_hours}h",
            "session": session.to_dict(),
        }), 200

    except InvalidCredentials:
        return jsonify({"error": "Invalid credentials"}), 401
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.token)
    return jsonify({"message": "Logged out"}), 200

