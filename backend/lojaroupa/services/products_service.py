# backend/lojaroupa/services/products_service.py
"""
Products Service

Catalog CRUD. Products are referenced by stock and journal rows but never
owned by them, so a product with history cannot be deleted.
"""
from __future__ import annotations

import logging

from ..errors import ConflictError, NotFound
from ..extensions import db
from ..models import Category, JournalEntry, Product, StockEntry

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "brand", "price", "size", "color", "alert_threshold"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def resolve_category(name: str | None) -> Category | None:
    """Category by exact name; None clears it. Unknown names raise NotFound."""
    if name is None or not str(name).strip():
        return None
    category = db.session.query(Category).filter_by(name=str(name).strip()).first()
    if category is None:
        raise NotFound(f"Category {name!r} not found.")
    return category


def list_products() -> list[dict]:
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in products]


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound(f"Product with ID {product_id} not found.")
    return product


def create_product(patch: dict, *, category_name: str | None = None) -> Product:
    product = Product()
    apply_product_patch(product, patch)
    if "alert_threshold" not in patch:
        product.alert_threshold = 5
    product.category = resolve_category(category_name)

    db.session.add(product)
    db.session.commit()
    logger.info("Product %s created", product.id)
    return product


def update_product(product_id: int, patch: dict, *, category_name=None, set_category: bool = False) -> Product:
    """
    Partial update. set_category distinguishes "category omitted" from
    "category explicitly cleared with null".
    """
    product = get_product(product_id)
    apply_product_patch(product, patch)
    if set_category:
        product.category = resolve_category(category_name)
    db.session.commit()
    return product


def delete_product(product_id: int) -> None:
    product = get_product(product_id)

    has_stock = db.session.query(StockEntry.id).filter_by(product_id=product_id).first() is not None
    has_history = db.session.query(JournalEntry.id).filter_by(product_id=product_id).first() is not None
    if has_stock or has_history:
        raise ConflictError("Product has stock or transaction history and cannot be deleted.")

    db.session.delete(product)
    db.session.commit()
    logger.info("Product %s deleted", product_id)
