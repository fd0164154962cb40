"""
Account Collection Module

Ordered container of accounts with the sort and filter queries used by the
request workflow and by customer-facing listings.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional

from .currency import Numeric, to_decimal

if TYPE_CHECKING:
    from .accounts import Account


class AccountList(list):
    """
    Accounts in insertion order

    The sort_* methods reorder this list in place (stable sorts). The
    filter_* methods never touch this list and return a new AccountList.
    """

    def __init__(self, accounts: Iterable["Account"] = ()):
        super().__init__(accounts)

    # Sorting (in place)

    def sort_by_balance(self) -> None:
        """Ascending available balance"""
        self.sort(key=lambda account: account.available_balance)

    def sort_by_type(self) -> None:
        """Lexicographic on the account type name"""
        self.sort(key=lambda account: account.account_type.name)

    def sort_by_created_date(self) -> None:
        """Oldest opened date first"""
        self.sort(key=lambda account: account.opened_date)

    # Filtering (pure)

    def filter_by_min_balance(self, min_balance: Numeric) -> "AccountList":
        """Accounts whose available balance is at least min_balance"""
        threshold = to_decimal(min_balance, "Minimum balance")
        return AccountList(account for account in self if account.available_balance >= threshold)

    def filter_by_type(self, account_type: str) -> "AccountList":
        """Accounts of one type, matched case-insensitively on its name"""
        wanted = getattr(account_type, "name", str(account_type)).strip().upper()
        return AccountList(account for account in self if account.account_type.name == wanted)

    def filter_by_active(self) -> "AccountList":
        return AccountList(account for account in self if account.active)

    # Lookups

    def find(self, account_number: str) -> Optional["Account"]:
        for account in self:
            if account.account_number == account_number:
                return account
        return None

    def total_balance(self) -> Decimal:
        return sum((account.available_balance for account in self), Decimal('0'))

    def __str__(self) -> str:
        lines = ["AccountList:"]
        lines.extend(repr(account) for account in self)
        return "\n".join(lines)
