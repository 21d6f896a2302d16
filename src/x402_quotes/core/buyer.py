"""
Client side of the quote flow: get a quote, then pay exactly that amount.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .amounts import to_base_units
from .config import BuyerConfig
from .issuer import Quote
from .payloads import build_payment_payload, encode_payment_header
from .requirements import EXACT_SCHEME
from .resolver import CLIENT_ID_HEADER, QUOTE_ID_HEADER

__all__ = ["QuoteBuyer"]

PAYMENT_HEADER = "X-PAYMENT"


class QuoteBuyer:
    def __init__(
        self,
        config: BuyerConfig,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.config.server_url}/{path.lstrip('/')}"

    def request_quote(self, number_of_files: int) -> Quote:
        response = self.session.post(
            self._url("/quote"),
            json={"number_of_files": number_of_files},
            headers={CLIENT_ID_HEADER: self.config.client_id},
            timeout=self.timeout,
        )
        if response.status_code != 200:
            raise RuntimeError(
                f"Quote request failed with {response.status_code}: {response.text}"
            )
        body = response.json()
        return Quote(quote_id=body["quote_id"], amount=body["amount"])

    def nominal_requirements(self, path: str = "/resource") -> List[Dict[str, Any]]:
        """Fetch the terms a caller without a quote is shown."""
        response = self.session.get(self._url(path), timeout=self.timeout)
        if response.status_code != 402:
            raise RuntimeError(
                f"Expected 402 from {path}, got {response.status_code}: {response.text}"
            )
        return list(response.json().get("accepts", []))

    def pay(
        self,
        quote: Quote,
        accepts: List[Dict[str, Any]],
        path: str = "/resource",
        *,
        now: Optional[int] = None,
        nonce: Optional[bytes] = None,
    ) -> requests.Response:
        candidates = [entry for entry in accepts if entry.get("scheme") == EXACT_SCHEME]
        if not candidates:
            raise RuntimeError("Server does not accept the exact payment scheme")
        requirement = dict(candidates[0])
        requirement["maxAmountRequired"] = str(
            to_base_units(quote.amount, self.config.token_decimals)
        )

        payload = build_payment_payload(
            requirement,
            payer_private_key=self.config.payer_private_key,
            chain_id=self.config.chain_id,
            backdate_seconds=self.config.backdate_seconds,
            now=now,
            nonce=nonce,
        )
        logging.info(
            "Paying %s (%s base units) for %s with quote %s",
            quote.amount,
            requirement["maxAmountRequired"],
            path,
            quote.quote_id,
        )
        return self.session.get(
            self._url(path),
            headers={
                QUOTE_ID_HEADER: quote.quote_id,
                CLIENT_ID_HEADER: self.config.client_id,
                PAYMENT_HEADER: encode_payment_header(payload),
            },
            timeout=self.timeout,
        )

    def buy(
        self,
        number_of_files: int,
        path: str = "/resource",
        *,
        now: Optional[int] = None,
        nonce: Optional[bytes] = None,
    ) -> requests.Response:
        quote = self.request_quote(number_of_files)
        accepts = self.nominal_requirements(path)
        return self.pay(quote, accepts, path, now=now, nonce=nonce)
