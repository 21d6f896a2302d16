"""
Pricing policy used by the quote endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

__all__ = ["DEFAULT_UNIT_PRICE", "UnitPricing"]

DEFAULT_UNIT_PRICE = Decimal("0.01")


@dataclass(frozen=True)
class UnitPricing:
    """Flat price per unit (for example per file processed)."""

    unit_price: Decimal = DEFAULT_UNIT_PRICE

    def price(self, quantity: int) -> Decimal:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        return self.unit_price * quantity
