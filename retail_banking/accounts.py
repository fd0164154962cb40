"""
Account Hierarchy Module

Checking, savings, credit and currency accounts. Every account starts inactive
and only becomes active once a manager approves the opening request. Each type
carries its own rules for credit limit, interest rate and currency code.
"""

from abc import ABC
from decimal import Decimal
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .currency import Numeric, format_amount, non_negative_decimal, normalize_currency_code, to_decimal
from .exceptions import ValidationError
from .users import Customer


class AccountType(Enum):
    """Account products a customer can request"""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    CURRENCY = "currency"

    @classmethod
    def parse(cls, value: Union["AccountType", str]) -> "AccountType":
        """Accept an AccountType or its name/value in any case"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise ValidationError(
            f"Unknown account type {value!r} (expected one of: "
            f"{', '.join(member.name for member in cls)})"
        )


def _as_datetime(value: Union[date, datetime, str]) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    raise ValidationError(f"Opened date must be a date or datetime, got {type(value).__name__}")


class Account(ABC):
    """
    Base bank account

    Account number, owner, type and opened date are fixed at construction.
    Only the available balance and the active flag change afterwards.
    """

    account_type: AccountType

    def __init__(
        self,
        account_number: str,
        customer: Customer,
        opened_date: Union[date, datetime],
        initial_balance: Numeric,
        active: bool = False
    ):
        if not account_number or not str(account_number).strip():
            raise ValidationError("Account number is required")
        if customer is None:
            raise ValidationError("Account owner is required")
        if not isinstance(customer, Customer):
            raise ValidationError(f"Account owner must be a Customer, got {type(customer).__name__}")
        if opened_date is None:
            raise ValidationError("Opened date is required")

        self._account_number = str(account_number).strip()
        self._customer = customer
        self._opened_date = _as_datetime(opened_date)
        self.available_balance: Decimal = non_negative_decimal(initial_balance, "Initial balance")
        self.active = bool(active)

    @property
    def account_number(self) -> str:
        return self._account_number

    @property
    def customer(self) -> Customer:
        return self._customer

    @property
    def customer_id(self) -> str:
        return self._customer.user_id

    @property
    def opened_date(self) -> datetime:
        return self._opened_date

    def get_credit_limit(self) -> Optional[Decimal]:
        """Credit limit, or None for accounts without credit"""
        return None

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False

    def _extra_info_lines(self) -> List[str]:
        return []

    def display_account_info(self) -> str:
        """Human-readable summary of identity, balance and type-specific fields"""
        lines = [
            f"Account Number: {self.account_number}",
            f"Account Type: {self.account_type.name}",
            f"Opened Date: {self.opened_date.date().isoformat()}",
            f"Available Balance: {format_amount(self.available_balance)}",
            f"Status: {'Active' if self.active else 'Pending approval'}",
        ]
        lines.extend(self._extra_info_lines())
        lines.append(f"Customer Name: {self.customer.full_name}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert account to dictionary for storage"""
        return {
            "id": self.account_number,
            "account_number": self.account_number,
            "customer_id": self.customer_id,
            "account_type": self.account_type.value,
            "opened_date": self.opened_date.isoformat(),
            "available_balance": str(self.available_balance),
            "active": self.active,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(account_number={self.account_number!r}, "
            f"customer={self.customer.full_name!r}, balance={self.available_balance}, "
            f"active={self.active})"
        )


class CheckingAccount(Account):
    """Everyday account, no extra attributes"""

    account_type = AccountType.CHECKING


class SavingsAccount(Account):
    """Deposit account earning interest (rate stored as a fraction, 0.02 == 2%)"""

    account_type = AccountType.SAVINGS

    def __init__(self, account_number: str, customer: Customer, opened_date: Union[date, datetime],
                 initial_balance: Numeric, interest_rate: Numeric, active: bool = False):
        super().__init__(account_number, customer, opened_date, initial_balance, active)
        self.interest_rate = non_negative_decimal(interest_rate, "Interest rate")

    def _extra_info_lines(self) -> List[str]:
        return [f"Interest Rate: {format_amount(self.interest_rate * 100)}%"]

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["interest_rate"] = str(self.interest_rate)
        return result


class CreditAccount(Account):
    """
    Credit account

    The requested credit amount becomes both the credit limit and the initial
    available balance.
    """

    account_type = AccountType.CREDIT

    def __init__(self, account_number: str, customer: Customer, opened_date: Union[date, datetime],
                 credit_limit: Numeric, interest_rate: Numeric = Decimal('0'), active: bool = False):
        limit = non_negative_decimal(credit_limit, "Credit limit")
        super().__init__(account_number, customer, opened_date, limit, active)
        self.credit_limit = limit
        self.interest_rate = non_negative_decimal(interest_rate, "Interest rate")

    def get_credit_limit(self) -> Optional[Decimal]:
        return self.credit_limit

    def _extra_info_lines(self) -> List[str]:
        return [
            f"Credit Limit: {format_amount(self.credit_limit)}",
            f"Interest Rate: {format_amount(self.interest_rate * 100)}%",
        ]

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["credit_limit"] = str(self.credit_limit)
        result["interest_rate"] = str(self.interest_rate)
        return result


class CurrencyAccount(Account):
    """Foreign-currency account; tracks when it was last used"""

    account_type = AccountType.CURRENCY

    def __init__(self, account_number: str, customer: Customer, opened_date: Union[date, datetime],
                 initial_balance: Numeric, currency_code: str, active: bool = False):
        super().__init__(account_number, customer, opened_date, initial_balance, active)
        self._currency_code = normalize_currency_code(currency_code)
        self.last_active_date = datetime.now(timezone.utc)

    @property
    def currency_code(self) -> str:
        return self._currency_code

    def set_currency_code(self, currency_code: str) -> None:
        self._currency_code = normalize_currency_code(currency_code)

    def mark_used(self) -> None:
        """Record activity on the account"""
        self.last_active_date = datetime.now(timezone.utc)

    def _extra_info_lines(self) -> List[str]:
        return [f"Currency Code: {self.currency_code}"]

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["currency_code"] = self.currency_code
        result["last_active_date"] = self.last_active_date.isoformat()
        return result


def create_account(
    account_type: Union[AccountType, str],
    account_number: str,
    customer: Customer,
    opened_date: Union[date, datetime],
    amount: Numeric,
    interest_rate: Optional[Numeric] = None,
    currency_code: Optional[str] = None
) -> Account:
    """
    Build an inactive account of the requested type

    Args:
        account_type: AccountType or its name
        account_number: Unique account number
        customer: Owning customer
        opened_date: Date the request was made
        amount: Initial balance, or requested credit amount for CREDIT
        interest_rate: Rate fraction for SAVINGS and CREDIT
        currency_code: 3-letter code for CURRENCY

    Raises:
        ValidationError: Unknown type, missing type-specific input, or a
            CREDIT request without a positive amount
    """
    account_type = AccountType.parse(account_type)

    if account_type == AccountType.CHECKING:
        return CheckingAccount(account_number, customer, opened_date, amount)

    if account_type == AccountType.SAVINGS:
        if interest_rate is None:
            raise ValidationError("Savings accounts require an interest rate")
        return SavingsAccount(account_number, customer, opened_date, amount, interest_rate)

    if account_type == AccountType.CREDIT:
        requested = to_decimal(amount, "Requested credit amount")
        if requested <= Decimal('0'):
            raise ValidationError(f"Requested credit amount must be positive, got {requested}")
        return CreditAccount(account_number, customer, opened_date, requested,
                             interest_rate if interest_rate is not None else Decimal('0'))

    if currency_code is None:
        raise ValidationError("Currency accounts require a currency code")
    return CurrencyAccount(account_number, customer, opened_date, amount, currency_code)


def account_from_dict(data: Dict[str, Any], customer: Customer) -> Account:
    """Rebuild a stored account for its (already loaded) owner"""
    account_type = AccountType(data["account_type"])
    opened_date = datetime.fromisoformat(data["opened_date"])
    active = bool(data.get("active", False))

    if account_type == AccountType.CHECKING:
        account = CheckingAccount(data["account_number"], customer, opened_date, Decimal('0'), active)
    elif account_type == AccountType.SAVINGS:
        account = SavingsAccount(data["account_number"], customer, opened_date, Decimal('0'),
                                 Decimal(data["interest_rate"]), active)
    elif account_type == AccountType.CREDIT:
        account = CreditAccount(data["account_number"], customer, opened_date,
                                Decimal(data["credit_limit"]), Decimal(data.get("interest_rate", "0")), active)
    else:
        account = CurrencyAccount(data["account_number"], customer, opened_date, Decimal('0'),
                                  data["currency_code"], active)
        if data.get("last_active_date"):
            account.last_active_date = datetime.fromisoformat(data["last_active_date"])

    # Stored balances are signed; construction only validates opening values
    account.available_balance = Decimal(data["available_balance"])
    return account
