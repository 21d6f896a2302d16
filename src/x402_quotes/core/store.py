"""
In-memory, thread-safe storage for issued quotes.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, Optional

__all__ = [
    "DuplicateQuoteId",
    "QuoteRecord",
    "QuoteRejected",
    "QuoteStore",
    "RejectionReason",
]


@dataclass(frozen=True)
class QuoteRecord:
    amount: str
    owner_id: str
    expires_at: int
    consumed: bool = False

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class RejectionReason(str, enum.Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    OWNER_MISMATCH = "owner_mismatch"
    ALREADY_CONSUMED = "already_consumed"


class QuoteRejected(Exception):
    """Raised by :meth:`QuoteStore.try_consume` when a quote cannot back a payment."""

    def __init__(self, quote_id: str, reason: RejectionReason) -> None:
        super().__init__(f"Quote {quote_id} rejected: {reason.value}")
        self.quote_id = quote_id
        self.reason = reason


class DuplicateQuoteId(KeyError):
    """Raised when inserting a quote under an identifier that is already stored."""


class QuoteStore:
    """
    Owns every :class:`QuoteRecord`.

    Records are immutable snapshots; consumption swaps in a consumed copy, so
    callers never hold a reference that changes under them. All operations
    share one lock and do nothing but dictionary work while holding it.
    """

    def __init__(self) -> None:
        self._records: Dict[str, QuoteRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def put(self, quote_id: str, record: QuoteRecord) -> None:
        with self._lock:
            if quote_id in self._records:
                raise DuplicateQuoteId(quote_id)
            self._records[quote_id] = record

    def get(self, quote_id: str) -> Optional[QuoteRecord]:
        with self._lock:
            return self._records.get(quote_id)

    def try_consume(self, quote_id: str, owner_id: str, now: float) -> QuoteRecord:
        """
        Validate and consume ``quote_id`` for ``owner_id`` in one step.

        Checks run in order: existence, expiry, ownership, prior consumption.
        Returns the record as it was before consumption.
        """
        with self._lock:
            record = self._records.get(quote_id)
            if record is None:
                raise QuoteRejected(quote_id, RejectionReason.NOT_FOUND)
            if record.is_expired(now):
                raise QuoteRejected(quote_id, RejectionReason.EXPIRED)
            if record.owner_id != owner_id:
                raise QuoteRejected(quote_id, RejectionReason.OWNER_MISMATCH)
            if record.consumed:
                raise QuoteRejected(quote_id, RejectionReason.ALREADY_CONSUMED)
            self._records[quote_id] = replace(record, consumed=True)
        return record

    def evict_expired(self, now: float) -> int:
        """Drop every record whose ``expires_at`` is at or before ``now``."""
        with self._lock:
            expired = [
                quote_id
                for quote_id, record in self._records.items()
                if record.is_expired(now)
            ]
            for quote_id in expired:
                del self._records[quote_id]
        if expired:
            logging.debug("Evicted %d expired quote(s)", len(expired))
        return len(expired)
