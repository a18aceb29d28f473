# backend/lojaroupa/routes/categories.py
from flask import Blueprint, request, current_app

from ..errors import INTERNAL_ERROR_BODY, LedgerError
from ..models import Category
from ..services import category_service
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    return {"categories": category_service.list_categories()}


@categories_bp.post("")
@require_auth
def create_category_route():
    result = validate_payload(
        model=Category,
        payload=request.get_json(silent=True),
        policy=CATEGORY_POLICY,
        partial=False,
    )
    if not result.ok:
        return result.error_body(), 400

    try:
        category = category_service.create_category(result.data["name"])
    except LedgerError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return INTERNAL_ERROR_BODY, 500

    return {"category": category.to_dict()}, 201


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    """Products in the category are kept and become uncategorized."""
    try:
        category_service.delete_category(category_id)
    except LedgerError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return INTERNAL_ERROR_BODY, 500

    return {"ok": True}, 200
