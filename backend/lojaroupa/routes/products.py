# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/lojaroupa/routes/products.py
"""
Product catalog routes. All routes require authentication.

Categories are referenced by name in payloads ("category": "Camisetas");
an unknown name is a 404, null clears the category.
"""
from flask import Blueprint, request, current_app

from ..errors import INTERNAL_ERROR_BODY, LedgerError
from ..models import Product
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "brand", "price", "size", "color", "alert_threshold", "category"},
    required_on_create={"name", "price", "size", "color"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    return {"products": products_service.list_products()}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return {"product": products_service.get_product(product_id).to_dict()}
    except LedgerError as e:
        return e.to_dict(), e.status_code


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a new product.

    name, price, size and color are required; price is a decimal > 0.
    """
    payload = request.get_json(silent=True) or {}

    result = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(result)
    if not result.ok:
        return result.error_body(), 400

    try:
        created = products_service.create_product(result.data, category_name=payload.get("category"))
    except LedgerError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return INTERNAL_ERROR_BODY, 500

    return {"product": created.to_dict()}, 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Partial update; only provided fields change."""
    payload = request.get_json(silent=True) or {}

    result = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(result)
    if not result.ok:
        return result.error_body(), 400

    try:
        updated = products_service.update_product(
            product_id,
            result.data,
            category_name=payload.get("category"),
            set_category="category" in payload,
        )
    except LedgerError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return INTERNAL_ERROR_BODY, 500

    return {"product": updated.to_dict()}, 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Delete a product without stock or transaction history."""
    try:
        products_service.delete_product(product_id)
    except LedgerError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return INTERNAL_ERROR_BODY, 500

    return {"ok": True}, 200
