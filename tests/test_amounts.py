from decimal import Decimal

import pytest

from x402_quotes.core.amounts import (
    MAX_BASE_UNITS,
    InvalidAmount,
    format_money_amount,
    parse_money_amount,
    to_base_units,
)


class TestToBaseUnits:
    def test_six_decimal_token(self):
        assert to_base_units("0.05", 6) == 50000
        assert to_base_units("0.01", 6) == 10000

    def test_accepts_decimal(self):
        assert to_base_units(Decimal("1.5"), 18) == 1_500_000_000_000_000_000

    def test_too_many_decimals(self):
        with pytest.raises(InvalidAmount, match="cannot be represented"):
            to_base_units("0.0000001", 6)

    def test_zero_rejected(self):
        with pytest.raises(InvalidAmount, match="greater than zero"):
            to_base_units("0", 6)

    @pytest.mark.parametrize("raw", ["abc", "", "NaN", "Infinity", "-1"])
    def test_malformed_amounts(self, raw):
        with pytest.raises(InvalidAmount):
            to_base_units(raw, 6)

    def test_invalid_amount_is_a_value_error(self):
        with pytest.raises(ValueError):
            to_base_units("not-money", 6)

    def test_beyond_default_decimal_precision(self):
        assert to_base_units("10000000000.000000000000000001", 18) == 10**28 + 1

    def test_extra_digit_past_default_precision_is_rejected(self):
        with pytest.raises(InvalidAmount, match="cannot be represented"):
            to_base_units("1.0000000000000000000000000001", 6)

    @pytest.mark.parametrize("raw", ["1e999999", "1e100"])
    def test_huge_amounts(self, raw):
        with pytest.raises(InvalidAmount):
            to_base_units(raw, 6)

    def test_uint256_bound(self):
        assert to_base_units(str(MAX_BASE_UNITS), 0) == MAX_BASE_UNITS
        with pytest.raises(InvalidAmount, match="too large"):
            to_base_units(str(MAX_BASE_UNITS + 1), 0)

    def test_zero_with_large_exponent(self):
        with pytest.raises(InvalidAmount, match="greater than zero"):
            to_base_units("0e999999", 6)


class TestParseMoneyAmount:
    def test_float_goes_through_str(self):
        assert parse_money_amount(0.1) == Decimal("0.1")

    def test_strips_whitespace(self):
        assert parse_money_amount(" 0.25 ") == Decimal("0.25")

    def test_rejects_bool(self):
        with pytest.raises(InvalidAmount):
            parse_money_amount(True)


def test_format_money_amount():
    assert format_money_amount(Decimal("0.0300")) == "0.03"
    assert format_money_amount(Decimal("100")) == "100"
    assert format_money_amount(Decimal("1E-6")) == "0.000001"


def test_format_money_amount_keeps_every_digit():
    raw = "10000000000.000000000000000001"
    assert format_money_amount(Decimal(raw)) == raw
    assert format_money_amount(Decimal("1.00000000000000000000000000010")) == (
        "1.0000000000000000000000000001"
    )
