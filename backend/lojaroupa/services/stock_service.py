# Overview: Register inbound/outbound stock movements and manual corrections.

from __future__ import annotations

import logging
from decimal import Decimal

from ..errors import NotFound
from ..models import JournalEntry, Product, StockEntry
from .concurrency import atomic, run_with_retry
from .inventory_ledger import InventoryLedger
from .journal_service import TransactionJournal

logger = logging.getLogger(__name__)


def register_movement(
    session,
    *,
    user_id: int,
    product_id: int,
    quantity: int,
    direction: str,
    transaction_price: Decimal,
    supplier_or_buyer: str,
) -> JournalEntry:
    """
    Record one purchase ("in") or sale ("out").

    Stock and journal change together or not at all; an outbound movement
    over the on-hand quantity raises InsufficientStock and writes nothing.
    """

    def _unit_of_work():
        with atomic(session):
            if session.get(Product, product_id) is None:
                raise NotFound(f"Product with ID {product_id} not found.")

            ledger = InventoryLedger(session)
            journal = TransactionJournal(session)

            ledger.apply_movement(product_id, quantity, direction)
            entry = journal.append(
                product_id=product_id,
                type=direction,
                quantity=quantity,
                transaction_price=transaction_price,
                supplier_or_buyer=supplier_or_buyer,
                user_id=user_id,
            )
            ledger.verify_non_negative()
        ledger.dispatch_alerts()
        return entry

    entry = run_with_retry(session, _unit_of_work)
    logger.info(
        "Movement %s registered: product %s qty %d by user %s",
        direction, product_id, quantity, user_id,
    )
    return entry


def correct_quantity(session, *, product_id: int, quantity: int) -> StockEntry:
    """Overwrite on-hand quantity; not a movement and not journaled."""
    with atomic(session):
        entry = InventoryLedger(session).set_quantity(product_id, quantity)
    return entry


def list_stock(session) -> list[dict]:
    return InventoryLedger(session).list_stock()


def list_transactions(session) -> list[dict]:
    return TransactionJournal(session).list_journal()
