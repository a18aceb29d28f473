# Overview: Flask API routes for returns and exchanges; parses input and returns JSON responses.

# backend/lojaroupa/routes/returns.py
"""
Return and Exchange API Routes

Both operate on a sale ("out" journal entry) and can be applied to it at
most once between them. The processing user is always the authenticated one.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import INTERNAL_ERROR_BODY, LedgerError
from ..extensions import db
from ..services.exchange_service import ExchangeWorkflow
from ..services.return_service import ReturnWorkflow
from ..validation import validate_exchange_payload, validate_transaction_reference
from ..decorators import require_auth


returns_bp = Blueprint("returns", __name__, url_prefix="/api")


# =============================================================================
# RETURNS
# =============================================================================

@returns_bp.post("/returns")
@require_auth
def create_return_route():
    """
    Return a sale in full.

    Request body:
    {
        "transaction_id": 123
    }

    Returns:
        201: {"transaction": <the new "return" entry>}
        400: invalid input, not a sale, or already returned/exchanged
        404: transaction not found
    """
    result = validate_transaction_reference(request.get_json(silent=True))
    if not result.ok:
        return jsonify(result.error_body()), 400

    try:
        entry = ReturnWorkflow(db.session).process(
            transaction_id=result.data["transaction_id"],
            user_id=g.current_user.id,
        )
        return jsonify({"transaction": entry.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process return")
        return jsonify(INTERNAL_ERROR_BODY), 500


# =============================================================================
# EXCHANGES
# =============================================================================

@returns_bp.post("/exchanges")
@require_auth
def create_exchange_route():
    """
    Exchange a sale for other products of equal total value.

    Request body:
    {
        "transaction_id": 123,
        "new_products": [{"product_id": 2, "quantity": 1}, ...]
    }

    Returns:
        201: {"transactions": [exchange_out..., exchange_in]}
        400: invalid input, wrong state, value mismatch or insufficient stock
        404: transaction or product not found
    """
    result = validate_exchange_payload(request.get_json(silent=True))
    if not result.ok:
        return jsonify(result.error_body()), 400

    try:
        entries = ExchangeWorkflow(db.session).process(
            transaction_id=result.data["transaction_id"],
            user_id=g.current_user.id,
            new_items=result.data["new_products"],
        )
        return jsonify({"transactions": [e.to_dict() for e in entries]}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process exchange")
        return jsonify(INTERNAL_ERROR_BODY), 500
