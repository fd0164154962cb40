"""
Tests for monetary helpers
"""

from decimal import Decimal

import pytest

from retail_banking.currency import format_amount, non_negative_decimal, normalize_currency_code, to_decimal
from retail_banking.exceptions import ValidationError


class TestToDecimal:

    @pytest.mark.parametrize("value,expected", [
        ("1,250.50", Decimal("1250.50")),
        ("$10", Decimal("10")),
        ("-$1,000", Decimal("-1000")),
        (" 42.50 ", Decimal("42.50")),
        ("+7", Decimal("7")),
        (0.1, Decimal("0.1")),
        (7, Decimal("7")),
        (Decimal("3.3"), Decimal("3.3")),
    ])
    def test_accepted_inputs(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", [
        None, True, "", "abc", "NaN", "Infinity", [1],
        "5e3", "12abc", "1.2.3", "1,2,3", "--5", "10-", ".", "12 000x",
    ])
    def test_rejected_inputs(self, value):
        with pytest.raises(ValidationError):
            to_decimal(value)

    def test_non_negative(self):
        assert non_negative_decimal("0", "Balance") == Decimal("0")
        with pytest.raises(ValidationError):
            non_negative_decimal("-0.01", "Balance")


class TestFormatting:

    def test_format_amount(self):
        assert format_amount(Decimal("1234.5")) == "1,234.50"
        assert format_amount(Decimal("0.005")) == "0.01"

    def test_normalize_currency_code(self):
        assert normalize_currency_code(" usd ") == "USD"
        for bad in ["US", "US1", "", None]:
            with pytest.raises(ValidationError):
                normalize_currency_code(bad)
