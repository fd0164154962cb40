"""
Pydantic schemas for API requests and responses
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from .accounts import Account, CreditAccount, CurrencyAccount, SavingsAccount
from .notifications import Notification
from .workflows import AccountRequest


class CreateUserRequest(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    user_id: str
    full_name: str
    role: str


class AccountRequestForm(BaseModel):
    customer_id: str
    account_type: str = Field(..., description="CHECKING, SAVINGS, CREDIT or CURRENCY")
    amount: str = Field(..., description="Initial balance, or requested credit amount for CREDIT")
    manager_id: Optional[str] = Field(None, description="Defaults to the first manager on record")
    currency_code: Optional[str] = Field(None, description="3-letter code, CURRENCY accounts only")


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)
    manager_id: Optional[str] = None


class DecisionRequest(BaseModel):
    manager_id: Optional[str] = None


class AccountResponse(BaseModel):
    account_number: str
    account_type: str
    customer_id: str
    opened_date: str
    available_balance: str
    active: bool
    credit_limit: Optional[str] = None
    interest_rate: Optional[str] = None
    currency_code: Optional[str] = None
    summary: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        credit_limit = account.get_credit_limit()
        interest_rate = None
        if isinstance(account, (SavingsAccount, CreditAccount)):
            interest_rate = str(account.interest_rate)
        return cls(
            account_number=account.account_number,
            account_type=account.account_type.name,
            customer_id=account.customer_id,
            opened_date=account.opened_date.isoformat(),
            available_balance=str(account.available_balance),
            active=account.active,
            credit_limit=str(credit_limit) if credit_limit is not None else None,
            interest_rate=interest_rate,
            currency_code=account.currency_code if isinstance(account, CurrencyAccount) else None,
            summary=account.display_account_info(),
        )


class AccountRequestResponse(BaseModel):
    request_id: str
    status: str
    customer_id: str
    manager_id: str
    account_number: str
    account_type: str
    submitted_at: str
    decision_reason: Optional[str] = None

    @classmethod
    def from_request(cls, request: AccountRequest) -> "AccountRequestResponse":
        return cls(
            request_id=request.request_id,
            status=request.status.value,
            customer_id=request.customer_id,
            manager_id=request.manager_id,
            account_number=request.account_number,
            account_type=request.account_type.name,
            submitted_at=request.submitted_at.isoformat(),
            decision_reason=request.decision_reason,
        )


class NotificationResponse(BaseModel):
    notification_id: str
    notification_type: str
    title: str
    message: str
    read: bool
    timestamp: str
    customer_id: Optional[str] = None
    account_number: Optional[str] = None

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            notification_id=notification.notification_id,
            notification_type=notification.notification_type.name,
            title=notification.title,
            message=notification.message,
            read=notification.read,
            timestamp=notification.timestamp.isoformat(),
            customer_id=notification.customer_id,
            account_number=notification.account_number,
        )


class InboxResponse(BaseModel):
    user_id: str
    unread_count: int
    notifications: List[NotificationResponse]
