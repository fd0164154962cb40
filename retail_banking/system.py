"""
Composition root: builds every service once and wires them together.
"""

from typing import Optional

from .config import RetailBankingConfig, get_config
from .interest import InterestRateConfig
from .notifications import NotificationService
from .persistence import PersistenceGateway
from .storage import StorageInterface, StorageMode, create_storage
from .users import BankManager, Customer
from .workflows import AccountRequestService


class BankingSystem:
    """Retail banking services sharing one store and one notification service"""

    def __init__(self, config: Optional[RetailBankingConfig] = None,
                 storage: Optional[StorageInterface] = None):
        self.config = config or get_config()
        self.storage_mode = StorageMode.parse(self.config.storage_mode)
        self.storage = storage or create_storage(self.storage_mode, self.config)
        self.gateway = PersistenceGateway(self.storage, self.storage_mode)
        self.notifications = NotificationService(self.gateway)
        self.interest_rates = InterestRateConfig.from_config(self.config)
        self.account_requests = AccountRequestService(
            self.gateway, self.notifications, self.interest_rates
        )

    def register_customer(self, first_name: str, last_name: str) -> Customer:
        return self.gateway.register_customer(Customer(first_name, last_name))

    def register_bank_manager(self, first_name: str, last_name: str) -> BankManager:
        return self.gateway.register_bank_manager(BankManager(first_name, last_name))

    def close(self) -> None:
        self.storage.close()
