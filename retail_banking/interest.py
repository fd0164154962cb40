"""
Interest Rate Configuration

Rates offered per account type, stored as fractions (0.02 == 2%). Request
forms show them as percentages; accounts store the fraction.
"""

from decimal import Decimal
from typing import Dict, Optional, Union
import threading

from .accounts import AccountType
from .currency import Numeric, non_negative_decimal


class InterestRateConfig:
    """Thread-safe table of interest rates by account type"""

    def __init__(self, rates: Optional[Dict[AccountType, Numeric]] = None):
        self._rates: Dict[AccountType, Decimal] = {}
        self._lock = threading.Lock()
        for account_type, rate in (rates or {}).items():
            self.set_rate(account_type, rate)

    @classmethod
    def from_config(cls, config) -> "InterestRateConfig":
        return cls({
            AccountType.SAVINGS: config.savings_interest_rate,
            AccountType.CREDIT: config.credit_interest_rate,
        })

    def get_rate(self, account_type: Union[AccountType, str]) -> Decimal:
        """Configured rate, zero for types without one"""
        account_type = AccountType.parse(account_type)
        with self._lock:
            return self._rates.get(account_type, Decimal('0'))

    def set_rate(self, account_type: Union[AccountType, str], rate: Numeric) -> None:
        account_type = AccountType.parse(account_type)
        value = non_negative_decimal(rate, f"{account_type.name} interest rate")
        with self._lock:
            self._rates[account_type] = value

    def as_percentage(self, account_type: Union[AccountType, str]) -> Decimal:
        return self.get_rate(account_type) * 100
