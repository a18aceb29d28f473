"""
Exchange Workflow

Swap the goods of one sale for a list of other products of exactly equal
total value.

Preconditions, checked in this order (any failure rolls everything back):
1. original entry exists, is a sale ("out"), and is not yet returned
2. every requested product exists
3. sum(price * quantity) of the new items, rounded half-up to cents,
   equals the original transaction_price
4. enough stock for each requested product (repeated ids are summed)

Effects, in one unit of work:
a. original flagged is_returned
b. per new item: stock decremented, "exchange_out" journaled
c. original product restocked by the original quantity
d. one "exchange_in" journaled for the original goods (is_returned=True)
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from ..errors import InsufficientStock, InvalidState, NotFound, ValueMismatch
from ..models import JournalEntry, Product
from ..models.inventory import DIRECTION_IN, DIRECTION_OUT, TYPE_EXCHANGE_IN, TYPE_EXCHANGE_OUT, TYPE_OUT
from .concurrency import atomic, run_with_retry
from .inventory_ledger import InventoryLedger
from .journal_service import TransactionJournal

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_cents(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class ExchangeWorkflow:
    def __init__(self, session):
        self.session = session

    def process(self, *, transaction_id: int, user_id: int, new_items: list[dict]) -> list[JournalEntry]:
        return run_with_retry(
            self.session,
            lambda: self._process(transaction_id=transaction_id, user_id=user_id, new_items=new_items),
        )

    def _process(self, *, transaction_id: int, user_id: int, new_items: list[dict]) -> list[JournalEntry]:
        if not new_items:
            raise ValueError("new_items must not be empty")

        with atomic(self.session):
            ledger = InventoryLedger(self.session)
            journal = TransactionJournal(self.session)

            # 1. original sale
            original = journal.get(transaction_id, lock=True)
            if original is None:
                raise NotFound("Original transaction not found.")
            if original.type != TYPE_OUT:
                raise InvalidState("Only outbound transactions can be exchanged.")
            if original.is_returned:
                raise InvalidState("This transaction has already been returned/exchanged.")

            # 2. products
            products: dict[int, Product] = {}
            for item in new_items:
                pid = item["product_id"]
                if pid in products:
                    continue
                product = self.session.get(Product, pid)
                if product is None:
                    raise NotFound(f"Product with ID {pid} not found.")
                products[pid] = product

            # 3. value
            new_total = to_cents(
                sum((products[i["product_id"]].price * i["quantity"] for i in new_items), Decimal("0"))
            )
            original_total = to_cents(original.transaction_price)
            if new_total != original_total:
                raise ValueMismatch(
                    f"The total value of the new products ({new_total:.2f}) must equal "
                    f"the original transaction value ({original_total:.2f})."
                )

            # 4. stock, cumulative per product
            requested: dict[int, int] = {}
            for item in new_items:
                requested[item["product_id"]] = requested.get(item["product_id"], 0) + item["quantity"]
            for pid, qty in requested.items():
                if ledger.available(pid) < qty:
                    raise InsufficientStock(f"Insufficient stock for product ID {pid}.", product_id=pid)

            # a.
            journal.mark_returned(original.id)

            # b.
            created: list[JournalEntry] = []
            for item in new_items:
                product = products[item["product_id"]]
                ledger.apply_movement(product.id, item["quantity"], DIRECTION_OUT)
                created.append(journal.append(
                    product_id=product.id,
                    type=TYPE_EXCHANGE_OUT,
                    quantity=item["quantity"],
                    transaction_price=to_cents(product.price * item["quantity"]),
                    supplier_or_buyer=original.supplier_or_buyer,
                    user_id=user_id,
                ))

            # c.
            ledger.apply_movement(original.product_id, original.quantity, DIRECTION_IN)

            # d.
            created.append(journal.append(
                product_id=original.product_id,
                type=TYPE_EXCHANGE_IN,
                quantity=original.quantity,
                transaction_price=original.transaction_price,
                supplier_or_buyer=original.supplier_or_buyer,
                user_id=user_id,
                is_returned=True,
            ))

            ledger.verify_non_negative()
        ledger.dispatch_alerts()

        logger.info(
            "Transaction %s exchanged by user %s for %d item(s)",
            transaction_id, user_id, len(new_items),
        )
        return created
