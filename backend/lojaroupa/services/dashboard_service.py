# Overview: Service-layer operations for the dashboard; aggregates over the journal and stock.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from lojaroupa.extensions import db
from lojaroupa.models import Category, JournalEntry, Product, StockEntry, User
from lojaroupa.models.catalog import format_money
from lojaroupa.models.inventory import TYPE_EXCHANGE_OUT, TYPE_IN, TYPE_OUT, TYPE_RETURN
from lojaroupa.time_utils import last_n_months, month_key, utcnow

SERIES_MONTHS = 12
UNCATEGORIZED = "Uncategorized"


def _money_sum(entry_type: str) -> Decimal:
    total = (
        db.session.query(func.coalesce(func.sum(JournalEntry.transaction_price), 0))
        .filter(JournalEntry.type == entry_type)
        .scalar()
    )
    return Decimal(str(total or 0))


def _count(entry_type: str) -> int:
    return int(
        db.session.query(func.count(JournalEntry.id))
        .filter(JournalEntry.type == entry_type)
        .scalar()
        or 0
    )


def _top_product() -> dict | None:
    qty = func.sum(JournalEntry.quantity).label("qty")
    row = (
        db.session.query(Product, qty)
        .join(JournalEntry, JournalEntry.product_id == Product.id)
        .filter(JournalEntry.type == TYPE_OUT)
        .group_by(Product.id)
        .order_by(qty.desc(), Product.id.asc())
        .first()
    )
    if row is None:
        return None
    product, total_qty = row
    data = product.summary()
    data["quantity_sold"] = int(total_qty or 0)
    return data


def _monthly_series(entry_type: str, months: list[str]) -> list[dict]:
    """Zero-filled monthly totals; bucketing is done here so it works on any engine."""
    start = datetime.strptime(months[0] + "-01", "%Y-%m-%d")
    rows = (
        db.session.query(JournalEntry.transaction_date, JournalEntry.transaction_price)
        .filter(JournalEntry.type == entry_type, JournalEntry.transaction_date >= start)
        .all()
    )
    buckets = {key: Decimal("0") for key in months}
    for occurred_at, price in rows:
        key = month_key(occurred_at)
        if key in buckets:
            buckets[key] += Decimal(str(price))
    return [{"month": key, "total": format_money(buckets[key])} for key in months]


def _inventory_by_category() -> list[dict]:
    rows = (
        db.session.query(Category.name, func.coalesce(func.sum(StockEntry.quantity), 0))
        .select_from(StockEntry)
        .join(Product, StockEntry.product_id == Product.id)
        .outerjoin(Category, Product.category_id == Category.id)
        .group_by(Category.name)
        .all()
    )
    result = [
        {"category": category or UNCATEGORIZED, "quantity": int(quantity)}
        for category, quantity in rows
    ]
    return sorted(result, key=lambda row: row["category"])


def dashboard_stats(user: User, *, now: datetime | None = None) -> dict:
    months = last_n_months(SERIES_MONTHS, now=now or utcnow())
    return {
        "total_sales": format_money(_money_sum(TYPE_OUT)),
        "total_purchases": format_money(_money_sum(TYPE_IN)),
        "total_exchanges": _count(TYPE_EXCHANGE_OUT),
        "total_returns": _count(TYPE_RETURN),
        "top_product": _top_product(),
        "sales_over_time": _monthly_series(TYPE_OUT, months),
        "purchases_over_time": _monthly_series(TYPE_IN, months),
        "inventory_by_category": _inventory_by_category(),
        "total_users": db.session.query(func.count(User.id)).scalar() if user.is_admin else 0,
        "user_role": user.access_level,
    }
