"""
HTTP client for the x402 facilitator's ``/verify`` and ``/settle`` endpoints.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests

from .requirements import PaymentRequirements

__all__ = [
    "FacilitatorClient",
    "FacilitatorError",
    "SettlementResult",
    "VerifyResult",
]


class FacilitatorError(RuntimeError):
    """Raised when the facilitator cannot be reached or answers with an error."""


@dataclass(frozen=True)
class VerifyResult:
    is_valid: bool
    invalid_reason: Optional[str]
    payer: Optional[str]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "VerifyResult":
        return cls(
            is_valid=bool(payload.get("isValid")),
            invalid_reason=payload.get("invalidReason"),
            payer=payload.get("payer"),
            raw=payload,
        )


@dataclass(frozen=True)
class SettlementResult:
    success: bool
    network: Optional[str]
    transaction: Optional[str]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "SettlementResult":
        return cls(
            success=bool(payload.get("success")),
            network=payload.get("network"),
            transaction=payload.get("transaction"),
            raw=payload,
        )


class FacilitatorClient:
    def __init__(
        self,
        url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self.url = url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post_json(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.url}/{path}"
        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FacilitatorError(f"Facilitator request to {url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise FacilitatorError(
                f"Facilitator responded with {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise FacilitatorError(
                f"Failed to parse JSON from facilitator at {url}: {response.text}"
            ) from exc
        if not isinstance(payload, dict):
            raise FacilitatorError(
                f"Facilitator at {url} returned a non-object response: {response.text}"
            )
        return payload

    @staticmethod
    def _request_body(
        payment_payload: Mapping[str, Any],
        requirements: PaymentRequirements,
    ) -> Dict[str, Any]:
        return {
            "x402Version": payment_payload.get("x402Version", 1),
            "paymentPayload": dict(payment_payload),
            "paymentRequirements": requirements.to_dict(),
        }

    def verify(
        self,
        payment_payload: Mapping[str, Any],
        requirements: PaymentRequirements,
    ) -> VerifyResult:
        logging.info("Submitting payment for verification to %s/verify", self.url)
        body = self._request_body(payment_payload, requirements)
        return VerifyResult.from_response(self._post_json("verify", body))

    def settle(
        self,
        payment_payload: Mapping[str, Any],
        requirements: PaymentRequirements,
    ) -> SettlementResult:
        logging.info("Submitting payment for settlement to %s/settle", self.url)
        body = self._request_body(payment_payload, requirements)
        return SettlementResult.from_response(self._post_json("settle", body))
