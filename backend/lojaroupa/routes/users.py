# Overview: Flask API routes for user administration; admin only.

# backend/lojaroupa/routes/users.py
"""
User administration routes.

SECURITY: Every route requires an authenticated admin. Password hashes
are never returned.
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import INTERNAL_ERROR_BODY, LedgerError
from ..services import user_service
from ..validation import validate_user_fields
from ..decorators import require_auth, require_admin


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_admin
def list_users_route():
    return jsonify({"users": user_service.list_users()}), 200


@users_bp.post("")
@require_auth
@require_admin
def create_user_route():
    """
    Create a user.

    Request body:
    {
        "name": "Ana Souza",
        "email": "ana@example.com",
        "password": "secret1",
        "access_level": "user"     (admin | user | guest)
    }
    """
    result = validate_user_fields(request.get_json(silent=True), partial=False)
    if not result.ok:
        return jsonify(result.error_body()), 400

    try:
        user = user_service.create_user(**result.data)
        return jsonify({"user": user.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify(INTERNAL_ERROR_BODY), 500


@users_bp.put("/<int:user_id>")
@require_auth
@require_admin
def update_user_route(user_id: int):
    """Partial update; a provided password is rehashed."""
    result = validate_user_fields(request.get_json(silent=True), partial=True)
    if not result.ok:
        return jsonify(result.error_body()), 400

    try:
        user = user_service.update_user(user_id, result.data)
        return jsonify({"user": user.to_dict()}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify(INTERNAL_ERROR_BODY), 500


@users_bp.delete("/<int:user_id>")
@require_auth
@require_admin
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(user_id)
        return jsonify({"ok": True}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify(INTERNAL_ERROR_BODY), 500
