# Overview: Per-product on-hand quantity; applies movements inside the caller's unit of work.

from __future__ import annotations

import logging

from ..errors import InsufficientStock, NotFound
from ..models import Product, StockEntry
from ..models.inventory import DIRECTION_IN, DIRECTION_OUT, DIRECTIONS
from .concurrency import lock_for_update
from .notifications import notify_low_stock
"""
Inventory Ledger Invariants (authoritative)

- One StockEntry per product, created lazily by the first movement.
- quantity never goes negative. An outbound movement larger than the
  on-hand quantity raises InsufficientStock before anything is written.
- The ledger never commits. Reads and writes go through the session it was
  given, so the caller's unit of work makes stock and journal atomic.
- Rows touched by a movement are re-checked by verify_non_negative() right
  before the caller commits.
- Low-stock alerts are queued, not sent. The caller calls dispatch_alerts()
  once its unit of work has committed, so a rolled-back movement never alerts.
"""

logger = logging.getLogger(__name__)


class InventoryLedger:
    def __init__(self, session):
        self.session = session
        self._touched: dict[int, StockEntry] = {}
        self._pending_alerts: dict[int, tuple[Product, int, int]] = {}

    def _load(self, product_id: int, *, lock: bool = True) -> StockEntry | None:
        query = self.session.query(StockEntry).filter_by(product_id=product_id)
        if lock:
            query = lock_for_update(query)
        return query.first()

    def available(self, product_id: int) -> int:
        """On-hand quantity; 0 when the product has never moved."""
        entry = self._load(product_id, lock=True)
        return entry.quantity if entry else 0

    def apply_movement(self, product_id: int, quantity: int, direction: str) -> StockEntry:
        """
        Apply one inbound or outbound movement of `quantity` units.

        Raises InsufficientStock for an outbound movement larger than the
        current quantity (including the no-row case). Queues a low-stock
        alert when the result is at or below the product's threshold.
        """
        if direction not in DIRECTIONS:
            raise ValueError(f"invalid direction: {direction!r}")
        if quantity <= 0:
            raise ValueError("movement quantity must be positive")

        entry = self._load(product_id)

        if direction == DIRECTION_OUT:
            current = entry.quantity if entry else 0
            if current < quantity:
                raise InsufficientStock(
                    f"Insufficient stock for product ID {product_id}.",
                    product_id=product_id,
                )
            entry.quantity = current - quantity
        elif entry is None:
            entry = StockEntry(product_id=product_id, quantity=quantity, operation_type=DIRECTION_IN)
            self.session.add(entry)
        else:
            entry.quantity += quantity

        entry.operation_type = direction
        self.session.flush()
        self._touched[product_id] = entry

        self._check_alert(entry)
        return entry

    def _check_alert(self, entry: StockEntry) -> None:
        product = self.session.get(Product, entry.product_id)
        if product is None or product.alert_threshold is None:
            return
        # Only the last movement per product counts
        if entry.quantity <= product.alert_threshold:
            self._pending_alerts[product.id] = (product, entry.quantity, product.alert_threshold)
        else:
            self._pending_alerts.pop(product.id, None)

    def dispatch_alerts(self) -> None:
        """Send queued low-stock alerts. Call only after the unit of work commits."""
        pending, self._pending_alerts = self._pending_alerts, {}
        for product, quantity, threshold in pending.values():
            notify_low_stock(self, product=product, quantity=quantity, threshold=threshold)

    def verify_non_negative(self) -> None:
        """Re-read every row this ledger touched; abort if any went negative."""
        for product_id, entry in self._touched.items():
            self.session.refresh(entry)
            if entry.quantity < 0:
                raise InsufficientStock(
                    f"Insufficient stock for product ID {product_id}.",
                    product_id=product_id,
                )

    def set_quantity(self, product_id: int, quantity: int) -> StockEntry:
        """
        Manual correction: overwrite on-hand quantity for an existing row.

        Not a movement, so nothing is journaled and operation_type is kept.
        """
        if quantity < 0:
            raise ValueError("quantity must be >= 0")
        entry = self._load(product_id)
        if entry is None:
            raise NotFound("Stock entry not found.")
        previous = entry.quantity
        entry.quantity = quantity
        self.session.flush()
        logger.info("Stock for product %s corrected from %d to %d", product_id, previous, quantity)
        return entry

    def list_stock(self) -> list[dict]:
        """Every StockEntry joined with its product summary."""
        rows = (
            self.session.query(StockEntry, Product)
            .join(Product, StockEntry.product_id == Product.id)
            .order_by(Product.name.asc(), StockEntry.id.asc())
            .all()
        )
        return [
            {
                "stock_id": entry.id,
                "product_id": entry.product_id,
                "quantity": entry.quantity,
                "operation_type": entry.operation_type,
                "product": product.summary(),
            }
            for entry, product in rows
        ]
