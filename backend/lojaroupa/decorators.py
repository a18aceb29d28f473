# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import Forbidden, Unauthenticated
from .services import session_service


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - Token is not the user's current session (logged out or superseded)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify(Unauthenticated("Authentication required").to_dict()), 401

        token = auth_header.split(" ", 1)[1].strip()

        context = session_service.validate_session(token)

        if not context:
            return jsonify(Unauthenticated("Invalid or expired token").to_dict()), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require the authenticated user to have access level "admin"."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, 'current_user'):
            return jsonify(Unauthenticated("Authentication required").to_dict()), 401
        if not g.current_user.is_admin:
            return jsonify(Forbidden("Admin access required").to_dict()), 403
        return f(*args, **kwargs)
    return decorated_function
