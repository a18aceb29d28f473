# Overview: Low-stock notification signal emitted by the inventory ledger.

"""
Receivers subscribe with:

    from lojaroupa.services.notifications import low_stock

    @low_stock.connect
    def on_low_stock(sender, product, quantity, threshold):
        ...

Alerts are dispatched by InventoryLedger.dispatch_alerts() after the
movement commits. Delivery is best-effort. A receiver that raises is logged
and skipped.
"""

from __future__ import annotations

import logging

from blinker import Namespace

logger = logging.getLogger(__name__)

_signals = Namespace()

low_stock = _signals.signal("low-stock")


def notify_low_stock(sender, *, product, quantity: int, threshold: int) -> None:
    logger.warning(
        "Low stock: product %s (%s) has %d unit(s), threshold %d",
        product.id, product.name, quantity, threshold,
    )
    for receiver in low_stock.receivers_for(sender):
        try:
            receiver(sender, product=product, quantity=quantity, threshold=threshold)
        except Exception:
            logger.exception("Low-stock receiver %r failed", receiver)
