"""
Account Request Workflow Module

Customers request new accounts; a bank manager approves or rejects each
request. Requests move SUBMITTED -> APPROVED or SUBMITTED -> REJECTED and
never leave a terminal state. Every transition notifies the people involved
through the NotificationService.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union
import threading

from .accounts import Account, AccountType, create_account
from .currency import Numeric
from .exceptions import InvalidTransitionError, ValidationError
from .identifiers import generate_account_number, generate_id
from .interest import InterestRateConfig
from .logging_config import get_logger, log_action
from .notifications import NotificationService
from .persistence import PersistenceGateway
from .session import current_customer
from .users import BankManager, Customer


class AccountRequestStatus(Enum):
    """Status of an account opening request"""
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class AccountRequest:
    """A customer's request for a new account, addressed to one manager"""
    request_id: str
    customer_id: str
    account_number: str
    manager_id: str
    account_type: AccountType
    status: AccountRequestStatus = AccountRequestStatus.SUBMITTED
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resolved_at: Optional[datetime] = None
    decision_reason: Optional[str] = None
    customer: Optional[Customer] = field(default=None, repr=False, compare=False)
    account: Optional[Account] = field(default=None, repr=False, compare=False)
    manager: Optional[BankManager] = field(default=None, repr=False, compare=False)

    @property
    def is_pending(self) -> bool:
        return self.status == AccountRequestStatus.SUBMITTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.request_id,
            "customer_id": self.customer_id,
            "account_number": self.account_number,
            "manager_id": self.manager_id,
            "account_type": self.account_type.value,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountRequest":
        return cls(
            request_id=data["id"],
            customer_id=data["customer_id"],
            account_number=data["account_number"],
            manager_id=data["manager_id"],
            account_type=AccountType(data["account_type"]),
            status=AccountRequestStatus(data["status"]),
            submitted_at=datetime.fromisoformat(data["submitted_at"]),
        )


class AccountRequestService:
    """
    Runs the submit / approve / reject workflow

    Pending requests live in the store until decided; once resolved only the
    notifications and the account's active flag remain. Rejected accounts are
    kept, inactive, on the customer for audit.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        notifications: NotificationService,
        rates: Optional[InterestRateConfig] = None,
        customer_provider: Callable[[], Optional[Customer]] = current_customer,
        account_number_factory: Callable[[AccountType], str] = generate_account_number
    ):
        self.gateway = gateway
        self.notifications = notifications
        self.rates = rates or InterestRateConfig()
        self.customer_provider = customer_provider
        self.account_number_factory = account_number_factory
        self.logger = get_logger(__name__)
        # Serialises check-then-resolve on pending requests
        self._lock = threading.RLock()

    # Submission

    def available_managers(self) -> List[BankManager]:
        return self.gateway.get_all_managers()

    def open_account_request(
        self,
        account_type: Union[AccountType, str],
        amount: Numeric,
        manager: Optional[BankManager] = None,
        customer: Optional[Customer] = None,
        currency_code: Optional[str] = None
    ) -> AccountRequest:
        """
        Build a new inactive account from request-form input and submit it

        Args:
            account_type: Requested type (AccountType or its name)
            amount: Initial balance, or the requested credit amount for CREDIT
            manager: Manager to decide; defaults to the first manager on record
            customer: Requesting customer; defaults to the session's customer
            currency_code: Required for CURRENCY accounts

        Raises:
            ValidationError: No customer, no manager, unknown type or bad amounts
        """
        customer = customer or self.customer_provider()
        if customer is None:
            raise ValidationError("No customer is signed in")

        if manager is None:
            managers = self.available_managers()
            if not managers:
                raise ValidationError("No bank manager is available to review the request")
            manager = managers[0]

        account_type = AccountType.parse(account_type)
        interest_rate = None
        if account_type in (AccountType.SAVINGS, AccountType.CREDIT):
            interest_rate = self.rates.get_rate(account_type)

        account = create_account(
            account_type,
            self.account_number_factory(account_type),
            customer,
            datetime.now(timezone.utc),
            amount,
            interest_rate=interest_rate,
            currency_code=currency_code
        )
        return self.submit_account_request(customer, account, manager)

    def submit_account_request(self, customer: Optional[Customer], account: Optional[Account],
                               manager: Optional[BankManager]) -> AccountRequest:
        """
        Persist a pending request for a freshly built account and notify both sides

        Raises:
            ValidationError: Missing argument, account already active, account
                owned by someone else, or a request already pending for it
            PersistenceError: A write failed after validation
        """
        log_action(
            self.logger, "debug", "Account request submitted",
            action="account_request.submit",
            extra={"customer": repr(customer), "requested_account": repr(account), "manager": repr(manager)}
        )

        if customer is None:
            raise ValidationError("Customer is required")
        if account is None:
            raise ValidationError("Requested account is required")
        if manager is None:
            raise ValidationError("Bank manager is required")
        if account.active:
            raise ValidationError(f"Account {account.account_number} is already active")
        if account.customer_id != customer.user_id:
            raise ValidationError(f"Account {account.account_number} does not belong to {customer.full_name}")

        with self._lock:
            if self.gateway.find_request(account.account_number) is not None:
                raise ValidationError(f"A request for account {account.account_number} is already pending")

            request = AccountRequest(
                request_id=generate_id(),
                customer_id=customer.user_id,
                account_number=account.account_number,
                manager_id=manager.user_id,
                account_type=account.account_type,
                customer=customer,
                account=account,
                manager=manager,
            )
            self.gateway.save_account(account)
            customer.add_account(account)
            self.gateway.update_customer(customer)
            self.gateway.save_request(request.request_id, request.to_dict())

        self.notifications.notify_account_request(manager, customer, account)

        log_action(
            self.logger, "info", "Account request pending approval",
            user_id=customer.user_id, action="account_request.submitted",
            resource=account.account_number,
            extra={"request_id": request.request_id, "manager_id": manager.user_id,
                   "account_type": account.account_type.name}
        )
        return request

    # Decisions

    def approve(self, customer: Optional[Customer], account: Optional[Account],
                manager: Optional[BankManager] = None) -> AccountRequest:
        """
        Activate the account and tell the customer

        Raises:
            ValidationError: Missing customer/account or mismatched parties
            InvalidTransitionError: No pending request for the account
        """
        with self._lock:
            request = self._pending_request(customer, account, manager)
            account.activate()
            self.gateway.save_account(account)
            self.gateway.delete_request(request.request_id)
            self._resolve(request, AccountRequestStatus.APPROVED, None)

        self.notifications.notify_approval(customer, account)
        log_action(
            self.logger, "info", "Account request approved",
            user_id=customer.user_id, action="account_request.approved",
            resource=account.account_number, extra={"request_id": request.request_id}
        )
        return request

    def reject(self, customer: Optional[Customer], account: Optional[Account], reason: Optional[str],
               manager: Optional[BankManager] = None) -> AccountRequest:
        """
        Decline the request; the account stays inactive and is kept for audit

        Raises:
            ValidationError: Missing customer/account/reason or mismatched parties
            InvalidTransitionError: No pending request for the account
        """
        if reason is None or not str(reason).strip():
            raise ValidationError("A reason is required to reject a request")
        reason = str(reason).strip()

        with self._lock:
            request = self._pending_request(customer, account, manager)
            # A failed approval may have left the flag set in memory and in the store
            account.deactivate()
            self.gateway.save_account(account)
            self.gateway.delete_request(request.request_id)
            self._resolve(request, AccountRequestStatus.REJECTED, reason)

        self.notifications.notify_rejection(customer, reason, account)
        log_action(
            self.logger, "info", "Account request rejected",
            user_id=customer.user_id, action="account_request.rejected",
            resource=account.account_number,
            extra={"request_id": request.request_id, "reason": reason}
        )
        return request

    def _pending_request(self, customer: Optional[Customer], account: Optional[Account],
                         manager: Optional[BankManager]) -> AccountRequest:
        if customer is None:
            raise ValidationError("Customer is required")
        if account is None:
            raise ValidationError("Account is required")

        data = self.gateway.find_request(account.account_number)
        if data is None:
            raise InvalidTransitionError(account.account_number)

        request = AccountRequest.from_dict(data)
        if request.customer_id != customer.user_id:
            raise ValidationError(f"Account {account.account_number} was not requested by {customer.full_name}")
        if manager is not None and request.manager_id != manager.user_id:
            raise ValidationError(f"Request for account {account.account_number} is assigned to another manager")

        request.customer = customer
        request.account = account
        request.manager = manager
        return request

    def _resolve(self, request: AccountRequest, status: AccountRequestStatus,
                 reason: Optional[str]) -> None:
        request.status = status
        request.resolved_at = datetime.now(timezone.utc)
        request.decision_reason = reason

    # Queries

    def get_pending_requests(self, manager: Optional[BankManager] = None) -> List[AccountRequest]:
        """Pending requests, oldest first, optionally only those for one manager"""
        requests = []
        for data in self.gateway.load_requests():
            request = AccountRequest.from_dict(data)
            if manager is not None and request.manager_id != manager.user_id:
                continue
            request.customer = self.gateway.get_customer(request.customer_id)
            request.account = request.customer.accounts.find(request.account_number)
            request.manager = self.gateway.get_bank_manager(request.manager_id)
            requests.append(request)
        requests.sort(key=lambda r: r.submitted_at)
        return requests

    def get_pending_request(self, account_number: str) -> Optional[AccountRequest]:
        """Hydrated pending request for an account, or None"""
        data = self.gateway.find_request(account_number)
        if data is None:
            return None
        request = AccountRequest.from_dict(data)
        request.customer = self.gateway.get_customer(request.customer_id)
        request.account = request.customer.accounts.find(account_number)
        request.manager = self.gateway.get_bank_manager(request.manager_id)
        return request
