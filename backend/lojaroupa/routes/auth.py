# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/lojaroupa/routes/auth.py
"""
Authentication API routes

- POST /api/auth/login   email + password -> bearer token
- GET  /api/auth/me      the authenticated user
- POST /api/auth/logout  ends the caller's session

Users are created by administrators only (POST /api/users or the
`flask users create` CLI command).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import INTERNAL_ERROR_BODY, LedgerError, ValidationError
from ..services import auth_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a session token.

    Token must be included as "Authorization: Bearer <token>" on protected
    routes. Logging in again replaces the previous token.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not isinstance(email, str) or not email.strip() or not isinstance(password, str) or not password:
            err = ValidationError("Email and password are required")
            return jsonify(err.to_dict()), 400

        token, user = auth_service.login(email, password)

        return jsonify({
            "token": token,
            "user": user.to_dict(),
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify(INTERNAL_ERROR_BODY), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        auth_service.logout(g.current_user.id)
        return jsonify({"message": "Logged out successfully"}), 200
    except Exception:
        current_app.logger.exception("Logout failed")
        return jsonify(INTERNAL_ERROR_BODY), 500
