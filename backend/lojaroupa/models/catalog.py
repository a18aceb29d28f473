from __future__ import annotations

from ..extensions import db
from lojaroupa.time_utils import to_utc_z


def format_money(value) -> str | None:
    """Decimal -> "123.45" for JSON; never round-trips through float."""
    if value is None:
        return None
    return f"{value:.2f}"


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
        }


class Product(db.Model):
    """
    Catalog item. Ledger tables reference products, they never own them.

    price is the unit sale price, fixed-point with two decimals. Line totals
    in the journal are always computed from Decimal, never float.

    alert_threshold: when on-hand quantity falls to this value or below after
    a movement, the inventory ledger emits a low-stock notification. Null
    disables the alert.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        db.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    size = db.Column(db.String(32), nullable=False)
    color = db.Column(db.String(64), nullable=False)

    alert_threshold = db.Column(db.Integer, nullable=True, default=5)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} size={self.size!r} color={self.color!r}>"

    def summary(self) -> dict:
        """Fields joined into stock and journal read models."""
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "price": format_money(self.price),
            "size": self.size,
            "color": self.color,
        }

    def to_dict(self) -> dict:
        data = self.summary()
        data.update({
            "alert_threshold": self.alert_threshold,
            "category_id": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        })
        return data
