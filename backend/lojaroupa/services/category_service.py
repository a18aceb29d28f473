from __future__ import annotations

from sqlalchemy import func

from ..errors import ConflictError, NotFound
from ..extensions import db
from ..models import Category, Product


def list_categories() -> list[dict]:
    """All categories by name, each with its product count."""
    rows = (
        db.session.query(Category, func.count(Product.id))
        .outerjoin(Product, Product.category_id == Category.id)
        .group_by(Category.id)
        .order_by(Category.name.asc())
        .all()
    )
    result = []
    for category, product_count in rows:
        data = category.to_dict()
        data["product_count"] = int(product_count)
        result.append(data)
    return result


def create_category(name: str) -> Category:
    if db.session.query(Category.id).filter_by(name=name).first() is not None:
        raise ConflictError(f"Category {name!r} already exists.")
    category = Category(name=name)
    db.session.add(category)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    """Delete a category; its products stay, uncategorized."""
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFound("Category not found.")

    for product in list(category.products):
        product.category = None
    db.session.delete(category)
    db.session.commit()
