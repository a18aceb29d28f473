# Overview: Append-only transaction journal for stock-affecting events.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..errors import NotFound
from ..models import JournalEntry, Product, User
from ..models.inventory import JOURNAL_TYPES
from lojaroupa.time_utils import utcnow
from .concurrency import lock_for_update


class TransactionJournal:
    """
    Immutable log of movements, returns and exchanges.

    - append() inserts and flushes (id assigned) but never commits.
    - mark_returned() is the only mutation ever applied to an existing row.
    - No deletes.
    """

    def __init__(self, session):
        self.session = session

    def append(
        self,
        *,
        product_id: int,
        type: str,
        quantity: int,
        transaction_price: Decimal,
        supplier_or_buyer: str,
        user_id: int,
        is_returned: bool = False,
        transaction_date: datetime | None = None,
    ) -> JournalEntry:
        if type not in JOURNAL_TYPES:
            raise ValueError(f"invalid journal entry type: {type!r}")
        if quantity <= 0:
            raise ValueError("journal entry quantity must be positive")

        entry = JournalEntry(
            product_id=product_id,
            type=type,
            quantity=quantity,
            transaction_price=transaction_price,
            supplier_or_buyer=supplier_or_buyer,
            user_id=user_id,
            is_returned=is_returned,
            transaction_date=transaction_date or utcnow(),
        )
        self.session.add(entry)
        self.session.flush()  # ensures entry.id is assigned without committing
        return entry

    def get(self, entry_id: int, *, lock: bool = False) -> JournalEntry | None:
        query = self.session.query(JournalEntry).filter_by(id=entry_id)
        if lock:
            query = lock_for_update(query)
        return query.first()

    def mark_returned(self, entry_id: int) -> JournalEntry:
        """
        Flip is_returned on one entry.

        Guarding against a second flip is the workflow's job; this only
        requires the entry to exist.
        """
        entry = self.get(entry_id, lock=True)
        if entry is None:
            raise NotFound("Transaction not found.")
        entry.is_returned = True
        self.session.flush()
        return entry

    def list_journal(self) -> list[dict]:
        """All entries, newest first, joined with product and user summaries."""
        rows = (
            self.session.query(JournalEntry, Product, User)
            .join(Product, JournalEntry.product_id == Product.id)
            .join(User, JournalEntry.user_id == User.id)
            .order_by(JournalEntry.transaction_date.desc(), JournalEntry.id.desc())
            .all()
        )
        result = []
        for entry, product, user in rows:
            data = entry.to_dict()
            data["product"] = product.summary()
            data["user"] = user.summary()
            result.append(data)
        return result
