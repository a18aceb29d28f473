# Overview: Flask API routes for stock movements, stock levels and the transaction journal.

# backend/lojaroupa/routes/stock.py
"""
Stock API Routes

- POST /api/stock/movements   register a purchase ("in") or sale ("out"), admin only
- GET  /api/stock             on-hand quantity per product
- PUT  /api/stock/<id>        manual quantity correction, admin only, not journaled
- GET  /api/transactions      the journal, newest first
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import INTERNAL_ERROR_BODY, LedgerError
from ..extensions import db
from ..models import JournalEntry
from ..services import stock_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_movement,
    validate_stock_quantity,
)
from ..decorators import require_auth, require_admin

MOVEMENT_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "type", "transaction_price", "supplier_or_buyer"},
    required_on_create={"product_id", "quantity", "type", "transaction_price", "supplier_or_buyer"},
)

stock_bp = Blueprint("stock", __name__, url_prefix="/api")


@stock_bp.post("/stock/movements")
@require_auth
@require_admin
def register_movement_route():
    """
    Register a stock movement.

    Request body:
    {
        "product_id": 1,
        "quantity": 3,
        "type": "out",
        "transaction_price": "300.00",
        "supplier_or_buyer": "Maria"
    }

    Returns:
        201: {"transaction": {...}}
        400: invalid input or insufficient stock
        404: product not found
    """
    payload = request.get_json(silent=True)

    result = validate_payload(model=JournalEntry, payload=payload, policy=MOVEMENT_POLICY, partial=False)
    if result.ok:
        enforce_rules_movement(result)
    if not result.ok:
        return jsonify(result.error_body()), 400

    data = result.data
    try:
        entry = stock_service.register_movement(
            db.session,
            user_id=g.current_user.id,
            product_id=data["product_id"],
            quantity=data["quantity"],
            direction=data["type"],
            transaction_price=data["transaction_price"],
            supplier_or_buyer=data["supplier_or_buyer"],
        )
        return jsonify({"transaction": entry.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register stock movement")
        return jsonify(INTERNAL_ERROR_BODY), 500


@stock_bp.get("/stock")
@require_auth
def list_stock_route():
    try:
        return jsonify({"stock": stock_service.list_stock(db.session)}), 200
    except Exception:
        current_app.logger.exception("Failed to list stock")
        return jsonify(INTERNAL_ERROR_BODY), 500


@stock_bp.put("/stock/<int:product_id>")
@require_auth
@require_admin
def update_stock_route(product_id: int):
    """Overwrite the on-hand quantity of an existing stock entry."""
    result = validate_stock_quantity(request.get_json(silent=True))
    if not result.ok:
        return jsonify(result.error_body()), 400

    try:
        entry = stock_service.correct_quantity(
            db.session,
            product_id=product_id,
            quantity=result.data["quantity"],
        )
        return jsonify({"stock": entry.to_dict()}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update stock")
        return jsonify(INTERNAL_ERROR_BODY), 500


@stock_bp.get("/transactions")
@require_auth
def list_transactions_route():
    try:
        return jsonify({"transactions": stock_service.list_transactions(db.session)}), 200
    except Exception:
        current_app.logger.exception("Failed to list transactions")
        return jsonify(INTERNAL_ERROR_BODY), 500
