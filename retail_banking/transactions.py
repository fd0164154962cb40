"""
Transaction Receipts

Transactions are processed elsewhere; this module only describes a completed
transaction well enough to send the customer a receipt.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from .currency import Numeric, to_decimal
from .exceptions import ValidationError
from .identifiers import generate_id


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    PAYMENT = "payment"


@dataclass(frozen=True)
class Transaction:
    """Completed transaction, as reported on a receipt"""
    transaction_type: TransactionType
    amount: Decimal
    transaction_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    account_number: Optional[str] = None
    transaction_id: str = field(default_factory=generate_id)

    def __post_init__(self):
        amount = to_decimal(self.amount, "Transaction amount")
        if amount <= Decimal('0'):
            raise ValidationError(f"Transaction amount must be positive, got {amount}")
        object.__setattr__(self, 'amount', amount)

    @classmethod
    def of(cls, transaction_type: str, amount: Numeric, **kwargs) -> "Transaction":
        try:
            kind = TransactionType(str(transaction_type).lower())
        except ValueError:
            raise ValidationError(f"Unknown transaction type {transaction_type!r}")
        return cls(kind, amount, **kwargs)
