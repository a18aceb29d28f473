from __future__ import annotations

from ..extensions import db
from lojaroupa.time_utils import to_utc_z
from .catalog import format_money


DIRECTION_IN = "in"
DIRECTION_OUT = "out"
DIRECTIONS = (DIRECTION_IN, DIRECTION_OUT)

TYPE_IN = "in"
TYPE_OUT = "out"
TYPE_RETURN = "return"
TYPE_EXCHANGE_OUT = "exchange_out"
TYPE_EXCHANGE_IN = "exchange_in"
JOURNAL_TYPES = (TYPE_IN, TYPE_OUT, TYPE_RETURN, TYPE_EXCHANGE_OUT, TYPE_EXCHANGE_IN)


class StockEntry(db.Model):
    """
    Current on-hand quantity for one product.

    Created lazily by the first movement, mutated by every later one.
    quantity never goes negative: the ledger rejects the movement first and
    the CHECK constraint backs it at the database.
    """
    __tablename__ = "stock"
    __table_args__ = (
        db.UniqueConstraint("product_id", name="uq_stock_product"),
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Direction of the most recent movement applied to this row
    operation_type = db.Column(db.String(8), nullable=False)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("stock_entry", uselist=False, lazy=True))

    def __repr__(self) -> str:
        return f"<StockEntry product_id={self.product_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "stock_id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "operation_type": self.operation_type,
            "updated_at": to_utc_z(self.updated_at),
        }


class JournalEntry(db.Model):
    """
    Immutable record of one stock-affecting event.

    Rows are only ever inserted. The single permitted update is flipping
    is_returned on an "out" entry when it is returned or exchanged.
    transaction_price is the line total, not a unit price.
    """
    __tablename__ = "transaction_history"
    __table_args__ = (
        db.Index("ix_txhist_date", "transaction_date"),
        db.Index("ix_txhist_type_date", "type", "transaction_date"),
        db.CheckConstraint("quantity > 0", name="ck_txhist_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False)
    supplier_or_buyer = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    transaction_price = db.Column(db.Numeric(10, 2), nullable=False)

    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False)
    is_returned = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")
    user = db.relationship("User")

    def __repr__(self) -> str:
        return f"<JournalEntry id={self.id} type={self.type} product_id={self.product_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "user_id": self.user_id,
            "type": self.type,
            "supplier_or_buyer": self.supplier_or_buyer,
            "quantity": self.quantity,
            "transaction_price": format_money(self.transaction_price),
            "transaction_date": to_utc_z(self.transaction_date),
            "is_returned": self.is_returned,
        }
