# Overview: Flask API routes for dashboards, sales reports and report sessions.

from flask import Blueprint, request, jsonify, current_app

from ..services import reporting_service, report_session_service
from ..services.errors import FulfillmentError
from ..validation import ValidationError
from ..decorators import require_auth


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _json_error(exc: Exception, action: str):
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, FulfillmentError):
        return jsonify(exc.to_dict()), exc.status_code
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    try:
        return jsonify(reporting_service.dashboard()), 200
    except Exception as e:
        return _json_error(e, "build dashboard")


@reports_bp.get("/sales")
@require_auth
def sales_report_route():
    """
    Query params:
    - from: ISO date/datetime (optional), inclusive lower bound on delivered_at
    - to: ISO date/datetime (optional), inclusive upper bound on delivered_at
    """
    try:
        report = reporting_service.sales_report(
            start=request.args.get("from"),
            end=request.args.get("to"),
        )
        return jsonify(report), 200
    except Exception as e:
        return _json_error(e, "build sales report")


@reports_bp.get("/session")
@require_auth
def active_session_route():
    """Active report session, or null when none is open."""
    active = report_session_service.get_active_session()
    return jsonify(active.to_dict() if active else None), 200


@reports_bp.post("/session/stop")
@require_auth
def stop_session_route():
    try:
        return jsonify(report_session_service.stop_active_session().to_dict()), 200
    except Exception as e:
        return _json_error(e, "stop report session")


@reports_bp.post("/session/start")
@require_auth
def start_session_route():
    try:
        return jsonify(report_session_service.start_new_session().to_dict()), 200
    except Exception as e:
        return _json_error(e, "start report session")


@reports_bp.get("/daily")
@require_auth
def daily_report_route():
    """Query param ``session``: "current" (default) or a report session id."""
    try:
        report = reporting_service.daily_session_report(request.args.get("session") or "current")
        return jsonify(report), 200
    except Exception as e:
        return _json_error(e, "build daily report")
