"""
Return Workflow

A sale ("out" journal entry) comes back in full:
- the original entry is flagged is_returned (at most once)
- stock for the product is restored by the original quantity
- a "return" entry is journaled against the user processing it

All three effects share one unit of work. A failure at any step rolls
back the flag and the stock change.

Rejected:
- unknown transaction id (NotFound)
- entries that are not sales, or already returned/exchanged (InvalidState)
"""

from __future__ import annotations

import logging

from ..errors import InvalidState, NotFound
from ..models import JournalEntry
from ..models.inventory import DIRECTION_IN, TYPE_OUT, TYPE_RETURN
from .concurrency import atomic, run_with_retry
from .inventory_ledger import InventoryLedger
from .journal_service import TransactionJournal

logger = logging.getLogger(__name__)


class ReturnWorkflow:
    def __init__(self, session):
        self.session = session

    def process(self, *, transaction_id: int, user_id: int) -> JournalEntry:
        return run_with_retry(
            self.session,
            lambda: self._process(transaction_id=transaction_id, user_id=user_id),
        )

    def _process(self, *, transaction_id: int, user_id: int) -> JournalEntry:
        with atomic(self.session):
            ledger = InventoryLedger(self.session)
            journal = TransactionJournal(self.session)

            original = journal.get(transaction_id, lock=True)
            if original is None:
                raise NotFound("Transaction not found.")
            if original.type != TYPE_OUT:
                raise InvalidState("Only outbound transactions can be returned.")
            if original.is_returned:
                raise InvalidState("This transaction has already been returned/exchanged.")

            journal.mark_returned(original.id)
            ledger.apply_movement(original.product_id, original.quantity, DIRECTION_IN)

            entry = journal.append(
                product_id=original.product_id,
                type=TYPE_RETURN,
                quantity=original.quantity,
                transaction_price=original.transaction_price,
                supplier_or_buyer=original.supplier_or_buyer,
                user_id=user_id,
            )
            ledger.verify_non_negative()
        ledger.dispatch_alerts()

        logger.info("Transaction %s returned by user %s (return entry %s)", transaction_id, user_id, entry.id)
        return entry
