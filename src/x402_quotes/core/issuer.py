"""
Issue single-use, time-bounded price quotes.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Optional

from .amounts import format_money_amount, parse_money_amount
from .store import DuplicateQuoteId, QuoteRecord, QuoteStore

__all__ = [
    "DEFAULT_QUOTE_TTL_SECONDS",
    "Quote",
    "QuoteIssuer",
]

DEFAULT_QUOTE_TTL_SECONDS = 300


def _new_quote_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Quote:
    quote_id: str
    amount: str

    def to_dict(self) -> Dict[str, str]:
        return {"quote_id": self.quote_id, "amount": self.amount}


class QuoteIssuer:
    def __init__(
        self,
        store: QuoteStore,
        *,
        ttl_seconds: int = DEFAULT_QUOTE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _new_quote_id,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._id_factory = id_factory

    def issue(
        self,
        amount: Decimal | str | int | float,
        owner_id: str,
        *,
        ttl: Optional[int] = None,
        now: Optional[int] = None,
    ) -> Quote:
        """
        Store a fresh, unconsumed quote for ``owner_id`` and return its id.

        A colliding identifier is regenerated once; a second collision
        propagates as :class:`DuplicateQuoteId`.
        """
        now = int(self._clock()) if now is None else now
        ttl = self.ttl_seconds if ttl is None else ttl
        money = format_money_amount(parse_money_amount(amount))
        record = QuoteRecord(amount=money, owner_id=owner_id, expires_at=now + ttl)

        quote_id = self._id_factory()
        try:
            self.store.put(quote_id, record)
        except DuplicateQuoteId:
            logging.warning("Quote id collision on %s, regenerating", quote_id)
            quote_id = self._id_factory()
            self.store.put(quote_id, record)

        logging.info(
            "Issued quote %s for %s (amount %s, expires at %d)",
            quote_id,
            owner_id,
            money,
            record.expires_at,
        )
        return Quote(quote_id=quote_id, amount=money)
