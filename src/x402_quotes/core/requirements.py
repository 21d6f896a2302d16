"""
Payment requirement types exchanged with x402 clients and the facilitator.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

__all__ = [
    "EXACT_SCHEME",
    "PaymentRequirements",
    "PaymentRequirementsTemplate",
]

EXACT_SCHEME = "exact"


@dataclass(frozen=True)
class PaymentRequirements:
    """
    Payment terms bound to a concrete resource URL.

    ``max_amount_required`` is expressed in token base units.
    """

    scheme: str
    network: str
    max_amount_required: str
    resource: str
    description: str
    mime_type: str
    pay_to: str
    max_timeout_seconds: int
    asset: str
    output_schema: Optional[Mapping[str, Any]] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def with_amount(self, base_units: int) -> "PaymentRequirements":
        return replace(
            self,
            scheme=EXACT_SCHEME,
            max_amount_required=str(base_units),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheme": self.scheme,
            "network": self.network,
            "maxAmountRequired": self.max_amount_required,
            "resource": self.resource,
            "description": self.description,
            "mimeType": self.mime_type,
            "outputSchema": dict(self.output_schema) if self.output_schema else None,
            "payTo": self.pay_to,
            "maxTimeoutSeconds": self.max_timeout_seconds,
            "asset": self.asset,
            "extra": dict(self.extra),
        }


@dataclass(frozen=True)
class PaymentRequirementsTemplate:
    """
    Route-level payment terms that still lack a resource URL.

    Immutable once the route is configured; the nominal amount is only shown
    to callers that have not presented a valid quote.
    """

    network: str
    max_amount_required: str
    pay_to: str
    asset: str
    token_decimals: int
    scheme: str = EXACT_SCHEME
    description: str = ""
    mime_type: str = "application/json"
    max_timeout_seconds: int = 300
    output_schema: Optional[Mapping[str, Any]] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_requirements(self, resource: str) -> PaymentRequirements:
        return PaymentRequirements(
            scheme=self.scheme,
            network=self.network,
            max_amount_required=self.max_amount_required,
            resource=resource,
            description=self.description,
            mime_type=self.mime_type,
            pay_to=self.pay_to,
            max_timeout_seconds=self.max_timeout_seconds,
            asset=self.asset,
            output_schema=self.output_schema,
            extra=self.extra,
        )
