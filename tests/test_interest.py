"""
Tests for interest rate configuration
"""

from decimal import Decimal

import pytest

from retail_banking.accounts import AccountType
from retail_banking.config import RetailBankingConfig
from retail_banking.exceptions import ValidationError
from retail_banking.interest import InterestRateConfig


class TestInterestRateConfig:

    def test_from_config_defaults(self):
        rates = InterestRateConfig.from_config(RetailBankingConfig())
        assert rates.get_rate(AccountType.SAVINGS) == Decimal("0.02")
        assert rates.get_rate("credit") == Decimal("0.05")
        assert rates.as_percentage("SAVINGS") == Decimal("2.00")

    def test_types_without_rate(self):
        assert InterestRateConfig().get_rate("CHECKING") == Decimal("0")

    def test_set_rate(self):
        rates = InterestRateConfig()
        rates.set_rate("SAVINGS", "0.035")
        assert rates.get_rate(AccountType.SAVINGS) == Decimal("0.035")

    def test_negative_rate_rejected(self):
        with pytest.raises(ValidationError):
            InterestRateConfig({AccountType.SAVINGS: "-0.01"})
