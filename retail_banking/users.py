"""
Users Module

Customers and bank managers. Each user owns an inbox of notifications guarded
by its own lock, and knows how to persist itself through the gateway.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional
import threading

from .account_collection import AccountList
from .exceptions import ValidationError
from .identifiers import generate_id

if TYPE_CHECKING:
    from .accounts import Account
    from .notifications import Notification
    from .persistence import PersistenceGateway


class Inbox:
    """
    Per-user ordered sequence of notifications

    Append-only except for mark_all_read and clear. All access goes through
    one re-entrant lock, and readers always get copies.
    """

    def __init__(self, notifications: Iterable["Notification"] = ()):
        self._items: List["Notification"] = list(notifications)
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def append(self, notification: "Notification") -> None:
        with self._lock:
            self._items.append(notification)

    def snapshot(self) -> List["Notification"]:
        with self._lock:
            return list(self._items)

    def unread(self) -> List["Notification"]:
        with self._lock:
            return [n for n in self._items if not n.read]

    def mark_all_read(self) -> int:
        """Mark every entry read; returns how many were unread"""
        with self._lock:
            changed = 0
            for notification in self._items:
                if not notification.read:
                    notification.mark_as_read()
                    changed += 1
            return changed

    def clear(self) -> int:
        with self._lock:
            removed = len(self._items)
            self._items.clear()
            return removed

    def to_list(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [n.to_dict() for n in self._items]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator["Notification"]:
        return iter(self.snapshot())


class User(ABC):
    """A person with a notification inbox"""

    role: str

    def __init__(self, first_name: str, last_name: str, user_id: Optional[str] = None,
                 inbox: Optional[Inbox] = None):
        if not first_name or not first_name.strip():
            raise ValidationError("First name is required")
        if not last_name or not last_name.strip():
            raise ValidationError("Last name is required")
        self.user_id = user_id or generate_id()
        self.first_name = first_name.strip()
        self.last_name = last_name.strip()
        self.inbox = inbox if inbox is not None else Inbox()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def lock(self) -> threading.RLock:
        """Lock serialising changes to this user's inbox"""
        return self.inbox.lock

    @abstractmethod
    def persist(self, gateway: "PersistenceGateway") -> None:
        """Write this user through the gateway path for its role"""

    def to_dict(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "id": self.user_id,
                "role": self.role,
                "first_name": self.first_name,
                "last_name": self.last_name,
                "inbox": self.inbox.to_list(),
            }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(user_id={self.user_id!r}, name={self.full_name!r})"


class Customer(User):
    """Bank customer; owns the accounts it requested"""

    role = "customer"

    def __init__(self, first_name: str, last_name: str, user_id: Optional[str] = None,
                 inbox: Optional[Inbox] = None, accounts: Optional[AccountList] = None):
        super().__init__(first_name, last_name, user_id, inbox)
        self.accounts = accounts if accounts is not None else AccountList()

    def add_account(self, account: "Account") -> None:
        """Link an account to this customer (no-op if already linked)"""
        with self.lock:
            if self.accounts.find(account.account_number) is None:
                self.accounts.append(account)

    def active_accounts(self) -> AccountList:
        """Accounts shown in balance listings; pending ones are left out"""
        with self.lock:
            return self.accounts.filter_by_active()

    def persist(self, gateway: "PersistenceGateway") -> None:
        gateway.update_customer(self)

    def to_dict(self) -> Dict[str, Any]:
        with self.lock:
            result = super().to_dict()
            result["account_numbers"] = [account.account_number for account in self.accounts]
            return result


class BankManager(User):
    """Branch manager deciding on account requests"""

    role = "bank_manager"

    def persist(self, gateway: "PersistenceGateway") -> None:
        gateway.update_bank_manager(self)
