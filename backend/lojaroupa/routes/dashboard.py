# backend/lojaroupa/routes/dashboard.py
from flask import Blueprint, jsonify, g, current_app

from ..errors import INTERNAL_ERROR_BODY
from ..services.dashboard_service import dashboard_stats
from ..decorators import require_auth

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
def dashboard_route():
    """Sales, purchases, exchange/return counts and stock by category."""
    try:
        return jsonify(dashboard_stats(g.current_user)), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify(INTERNAL_ERROR_BODY), 500
