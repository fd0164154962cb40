"""
Persistence Gateway Module

Loads and updates customers, bank managers, accounts and pending account
requests on top of a StorageInterface. The gateway keeps an identity map so
that a process holds exactly one object per user; per-user inbox locks rely on
that.
"""

from typing import Any, Dict, List, Optional, Union
import threading

from .accounts import Account, account_from_dict
from .account_collection import AccountList
from .exceptions import NotFoundError, PersistenceError
from .logging_config import get_logger, log_action
from .notifications import Notification
from .storage import StorageInterface, StorageMode
from .users import BankManager, Customer, Inbox, User


class PersistenceGateway:
    """Storage access for users, accounts and pending requests"""

    customers_table = "customers"
    managers_table = "bank_managers"
    accounts_table = "accounts"
    requests_table = "account_requests"

    def __init__(self, storage: StorageInterface,
                 storage_mode: Union[StorageMode, str] = StorageMode.MEMORY):
        self.storage = storage
        self.storage_mode = StorageMode.parse(storage_mode)
        self.logger = get_logger(__name__)
        self._customers: Dict[str, Customer] = {}
        self._managers: Dict[str, BankManager] = {}
        self._lock = threading.RLock()

    # Low-level helpers

    def _write(self, table: str, record_id: str, data: Dict[str, Any], entity_type: str) -> None:
        try:
            self.storage.save(table, record_id, data)
        except Exception as e:
            log_action(self.logger, "error", f"Failed to persist {entity_type}",
                       action="persistence.write_failed", resource=record_id,
                       extra={"table": table, "error": str(e)})
            raise PersistenceError(f"Failed to persist {entity_type} {record_id}: {e}",
                                   entity_type, record_id) from e

    def _call(self, entity_type: str, record_id: str, operation, *args):
        try:
            return operation(*args)
        except Exception as e:
            raise PersistenceError(f"Storage error for {entity_type} {record_id}: {e}",
                                   entity_type, record_id) from e

    # Users

    def register_customer(self, customer: Customer) -> Customer:
        """Add a new customer to the identity map and the store"""
        with self._lock:
            self._customers[customer.user_id] = customer
        self.update_customer(customer)
        return customer

    def register_bank_manager(self, manager: BankManager) -> BankManager:
        with self._lock:
            self._managers[manager.user_id] = manager
        self.update_bank_manager(manager)
        return manager

    def update_customer(self, customer: Customer) -> None:
        with self._lock:
            self._customers.setdefault(customer.user_id, customer)
        self._write(self.customers_table, customer.user_id, customer.to_dict(), "customer")

    def update_bank_manager(self, manager: BankManager) -> None:
        with self._lock:
            self._managers.setdefault(manager.user_id, manager)
        self._write(self.managers_table, manager.user_id, manager.to_dict(), "bank_manager")

    def get_customer(self, customer_id: str) -> Customer:
        """
        Customer with its accounts and inbox

        Raises:
            NotFoundError: Unknown customer id
        """
        with self._lock:
            cached = self._customers.get(customer_id)
            if cached is not None:
                return cached

            data = self._call("customer", customer_id, self.storage.load,
                              self.customers_table, customer_id)
            if not data:
                raise NotFoundError("customer", customer_id)

            customer = Customer(data["first_name"], data["last_name"], user_id=data["id"])
            customer.accounts = self._load_accounts(customer, data.get("account_numbers", []))
            # Cached before the inbox so notifications about this customer link back to it
            self._customers[customer_id] = customer
            customer.inbox = self._load_inbox(data.get("inbox", []))
            return customer

    def get_bank_manager(self, manager_id: str) -> BankManager:
        """
        Raises:
            NotFoundError: Unknown manager id
        """
        with self._lock:
            cached = self._managers.get(manager_id)
            if cached is not None:
                return cached

            data = self._call("bank_manager", manager_id, self.storage.load,
                              self.managers_table, manager_id)
            if not data:
                raise NotFoundError("bank_manager", manager_id)
            return self._hydrate_manager(data)

    def get_all_managers(self) -> List[BankManager]:
        """All bank managers in registration order"""
        with self._lock:
            records = self._call("bank_manager", "*", self.storage.load_all, self.managers_table)
            return [
                self._managers.get(data["id"]) or self._hydrate_manager(data)
                for data in records
            ]

    def get_user(self, user_id: str) -> User:
        """Customer or bank manager with this id"""
        try:
            return self.get_customer(user_id)
        except NotFoundError:
            return self.get_bank_manager(user_id)

    def _hydrate_manager(self, data: Dict[str, Any]) -> BankManager:
        manager = BankManager(data["first_name"], data["last_name"], user_id=data["id"],
                              inbox=self._load_inbox(data.get("inbox", [])))
        self._managers[manager.user_id] = manager
        return manager

    def _load_accounts(self, customer: Customer, account_numbers: List[str]) -> AccountList:
        records = self._call("account", customer.user_id, self.storage.find,
                             self.accounts_table, {"customer_id": customer.user_id})
        by_number = {data["account_number"]: data for data in records}
        # Keep the customer's own ordering, then anything not listed yet
        ordered = [by_number.pop(number) for number in account_numbers if number in by_number]
        ordered.extend(by_number.values())
        return AccountList(account_from_dict(data, customer) for data in ordered)

    def _load_inbox(self, records: List[Dict[str, Any]]) -> Inbox:
        notifications = []
        for data in records:
            customer = self._customers.get(data.get("customer_id") or "")
            account = None
            if customer is not None and data.get("account_number"):
                account = customer.accounts.find(data["account_number"])
            notifications.append(Notification.from_dict(data, customer, account))
        return Inbox(notifications)

    # Accounts

    def save_account(self, account: Account) -> None:
        self._write(self.accounts_table, account.account_number, account.to_dict(), "account")

    def get_account(self, account_number: str) -> Account:
        """
        Account by number, attached to its owner's in-memory account list

        Raises:
            NotFoundError: Unknown account number
        """
        data = self._call("account", account_number, self.storage.load,
                          self.accounts_table, account_number)
        if not data:
            raise NotFoundError("account", account_number)
        customer = self.get_customer(data["customer_id"])
        account = customer.accounts.find(account_number)
        if account is None:
            account = account_from_dict(data, customer)
            customer.add_account(account)
        return account

    # Pending account requests

    def save_request(self, request_id: str, data: Dict[str, Any]) -> None:
        self._write(self.requests_table, request_id, data, "account_request")

    def delete_request(self, request_id: str) -> bool:
        return self._call("account_request", request_id, self.storage.delete,
                          self.requests_table, request_id)

    def find_request(self, account_number: str) -> Optional[Dict[str, Any]]:
        records = self._call("account_request", account_number, self.storage.find,
                             self.requests_table, {"account_number": account_number})
        return records[0] if records else None

    def load_requests(self) -> List[Dict[str, Any]]:
        return self._call("account_request", "*", self.storage.load_all, self.requests_table)
