"""
Money amount helpers: human-readable decimals to token base units.
"""

from __future__ import annotations

from decimal import Decimal, DecimalException, Inexact, InvalidOperation, Overflow, localcontext

__all__ = [
    "MAX_BASE_UNITS",
    "InvalidAmount",
    "format_money_amount",
    "parse_money_amount",
    "to_base_units",
]

# Largest value an ERC-20 transfer amount (uint256) can carry.
MAX_BASE_UNITS = 2**256 - 1


class InvalidAmount(ValueError):
    """Raised when a money amount cannot be turned into token base units."""


def parse_money_amount(value: Decimal | str | int | float) -> Decimal:
    """
    Parse ``value`` into a finite, non-negative :class:`~decimal.Decimal`.

    Floats go through ``str`` first so ``0.1`` stays ``0.1`` instead of its
    binary expansion.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Amount must be numeric, got {value!r}")
    raw = str(value) if isinstance(value, float) else value
    try:
        amount = Decimal(raw.strip() if isinstance(raw, str) else raw)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidAmount(f"Amount must be a valid decimal number, got {value!r}") from exc

    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {value!r}")
    if amount < 0:
        raise InvalidAmount(f"Amount must not be negative, got {value!r}")
    return amount


def _exact_precision(amount: Decimal, extra: int = 0) -> int:
    return max(len(amount.as_tuple().digits) + extra + 2, 28)


def format_money_amount(amount: Decimal) -> str:
    """Render ``amount`` without exponent notation or trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = _exact_precision(amount)
        ctx.traps[Inexact] = True
        ctx.traps[Overflow] = True
        try:
            text = format(amount.normalize(), "f")
        except DecimalException as exc:
            raise InvalidAmount(f"Amount {amount!r} cannot be formatted exactly") from exc
    return text if text != "-0" else "0"


def to_base_units(amount: Decimal | str, decimals: int) -> int:
    """
    Convert ``amount`` to an integer count of base units for a token with
    ``decimals`` decimals.

    The arithmetic never rounds: anything finer than one base unit, or too
    large for a uint256, raises :class:`InvalidAmount`.
    """
    value = parse_money_amount(amount)
    if decimals < 0:
        raise InvalidAmount(f"Token decimals must not be negative, got {decimals}")

    with localcontext() as ctx:
        ctx.prec = _exact_precision(value, decimals)
        ctx.traps[Inexact] = True
        ctx.traps[Overflow] = True
        try:
            scaled = value.scaleb(decimals)
            integral = scaled.to_integral_exact()
        except DecimalException as exc:
            raise InvalidAmount(
                f"Amount {value} cannot be represented with {decimals} decimals"
            ) from exc

    if integral != scaled:
        raise InvalidAmount(
            f"Amount {value} cannot be represented with {decimals} decimals"
        )
    if integral <= 0:
        raise InvalidAmount("Payment amount must be greater than zero")
    if integral.adjusted() > len(str(MAX_BASE_UNITS)):
        raise InvalidAmount(f"Amount {value} is too large for a token transfer")
    as_int = int(integral)
    if as_int > MAX_BASE_UNITS:
        raise InvalidAmount(f"Amount {value} is too large for a token transfer")

    return as_int
