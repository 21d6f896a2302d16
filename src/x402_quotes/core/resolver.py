"""
Per-request resolution of payment requirements backed by issued quotes.

The resolver is the single place where a presented quote is turned into
concrete payment terms. Whatever goes wrong with a quote (unknown, expired,
issued to someone else, already spent) the caller sees the same nominal terms,
so the response never reveals whether a given quote id exists.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union
from urllib.parse import urlsplit, urlunsplit

from .amounts import to_base_units
from .requirements import PaymentRequirements, PaymentRequirementsTemplate
from .store import QuoteRejected, QuoteStore

__all__ = [
    "CLIENT_ID_HEADER",
    "FinalizedRequirements",
    "PaymentRequired",
    "QUOTE_ID_HEADER",
    "QuoteRequirementsResolver",
    "RequirementsResolver",
    "Resolution",
    "UNKNOWN_CLIENT_ID",
]

QUOTE_ID_HEADER = "X-Quote-Id"
# Untrusted: any caller can claim any id. Swap for an authenticated principal
# before relying on owner binding for anything beyond a demo.
CLIENT_ID_HEADER = "X-Client-Id"
UNKNOWN_CLIENT_ID = "unknown"


@dataclass(frozen=True)
class FinalizedRequirements:
    requirements: Tuple[PaymentRequirements, ...]


@dataclass(frozen=True)
class PaymentRequired:
    """The caller must pay; ``accepts`` holds the nominal terms only."""

    accepts: Tuple[PaymentRequirements, ...]


Resolution = Union[FinalizedRequirements, PaymentRequired]


class RequirementsResolver(Protocol):
    def resolve(
        self,
        headers: Mapping[str, str],
        uri: str,
        templates: Sequence[PaymentRequirementsTemplate],
        now: Optional[float] = None,
    ) -> Resolution: ...


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            value = value.strip()
            return value or None
    return None


def build_resource_url(base_url: str, uri: str) -> str:
    """Replace the path and query of ``base_url`` with those of ``uri``."""
    base = urlsplit(base_url)
    target = urlsplit(uri)
    return urlunsplit((base.scheme, base.netloc, target.path or "/", target.query, ""))


class QuoteRequirementsResolver:
    def __init__(
        self,
        store: QuoteStore,
        base_url: str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.base_url = base_url
        self._clock = clock

    def resolve(
        self,
        headers: Mapping[str, str],
        uri: str,
        templates: Sequence[PaymentRequirementsTemplate],
        now: Optional[float] = None,
    ) -> Resolution:
        """
        Finalize ``templates`` with the amount of the presented quote.

        Raises :class:`~x402_quotes.core.amounts.InvalidAmount` when the quoted
        amount cannot be expressed in a template's token base units.
        """
        resource = build_resource_url(self.base_url, uri)
        nominal = PaymentRequired(
            accepts=tuple(t.to_requirements(resource) for t in templates)
        )

        quote_id = _header(headers, QUOTE_ID_HEADER)
        if quote_id is None:
            return nominal
        client_id = _header(headers, CLIENT_ID_HEADER) or UNKNOWN_CLIENT_ID

        now = self._clock() if now is None else now
        try:
            record = self.store.try_consume(quote_id, client_id, now)
        except QuoteRejected as exc:
            logging.info(
                "Quote %s rejected for client %s: %s",
                quote_id,
                client_id,
                exc.reason.value,
                extra={"quote_id": quote_id, "reason": exc.reason.value},
            )
            return nominal

        finalized: List[PaymentRequirements] = []
        for template in templates:
            base_units = to_base_units(record.amount, template.token_decimals)
            finalized.append(template.to_requirements(resource).with_amount(base_units))
        logging.info("Quote %s consumed by client %s", quote_id, client_id)
        return FinalizedRequirements(requirements=tuple(finalized))
