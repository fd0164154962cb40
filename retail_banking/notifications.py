"""
Notification Dispatch Module

Creates notifications for banking events (account requests, decisions,
transaction receipts, security and system notices), appends them to the
recipient's inbox and persists the recipient. Also provides the inbox
queries used by the presentation layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import threading

from .currency import format_amount
from .exceptions import PersistenceError
from .identifiers import generate_id
from .logging_config import get_logger, log_action

if TYPE_CHECKING:
    from .accounts import Account
    from .config import RetailBankingConfig
    from .persistence import PersistenceGateway
    from .storage import StorageMode
    from .transactions import Transaction
    from .users import Customer, User


class NotificationType(Enum):
    """Types of notifications"""
    TRANSACTION_RECEIPT = "transaction_receipt"
    ACCOUNT_OPENING_REQUEST = "account_opening_request"
    ACCOUNT_APPROVAL = "account_approval"
    ACCOUNT_REJECTION = "account_rejection"
    INFO = "info"
    NEW_MESSAGE = "new_message"
    SECURITY_ALERT = "security_alert"
    SYSTEM_UPDATE = "system_update"
    CUSTOM = "custom"


@dataclass(frozen=True, eq=False)
class Notification:
    """
    Inbox message. Immutable after creation except for the read flag.

    The linked customer and account are kept both as object references (for
    in-process callers) and as ids (for storage).
    """
    notification_type: NotificationType
    title: str
    message: str
    customer_id: Optional[str] = None
    account_number: Optional[str] = None
    read: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notification_id: str = field(default_factory=generate_id)
    customer: Optional["Customer"] = field(default=None, repr=False)
    account: Optional["Account"] = field(default=None, repr=False)

    @classmethod
    def create(cls, notification_type: NotificationType, title: str, message: str,
               customer: Optional["Customer"] = None,
               account: Optional["Account"] = None) -> "Notification":
        return cls(
            notification_type=notification_type,
            title=title,
            message=message,
            customer_id=customer.user_id if customer is not None else None,
            account_number=account.account_number if account is not None else None,
            customer=customer,
            account=account,
        )

    def mark_as_read(self) -> None:
        object.__setattr__(self, "read", True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notification_id": self.notification_id,
            "notification_type": self.notification_type.value,
            "title": self.title,
            "message": self.message,
            "customer_id": self.customer_id,
            "account_number": self.account_number,
            "read": self.read,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], customer: Optional["Customer"] = None,
                  account: Optional["Account"] = None) -> "Notification":
        return cls(
            notification_type=NotificationType(data["notification_type"]),
            title=data["title"],
            message=data["message"],
            customer_id=data.get("customer_id"),
            account_number=data.get("account_number"),
            read=bool(data.get("read", False)),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            notification_id=data["notification_id"],
            customer=customer,
            account=account,
        )


class NotificationService:
    """
    Dispatches notifications into user inboxes

    One instance per process. The composition root normally builds it and
    passes it around; get_instance() offers the same guarantee to callers
    without a root, initialising exactly once even under concurrent first use.
    """

    _instance: Optional["NotificationService"] = None
    _instance_lock = threading.Lock()

    def __init__(self, gateway: "PersistenceGateway"):
        self.gateway = gateway
        self.logger = get_logger(__name__)

    @property
    def storage_mode(self) -> "StorageMode":
        return self.gateway.storage_mode

    @classmethod
    def get_instance(cls, storage_mode=None,
                     config: Optional["RetailBankingConfig"] = None,
                     gateway: Optional["PersistenceGateway"] = None) -> "NotificationService":
        """
        Process-wide instance, created on first call

        Pass the gateway of an existing composition root so both share one
        identity map, and therefore one lock per user. Without a gateway the
        first call builds its own store from settings; do not combine such an
        instance with a BankingSystem in the same process.

        The first call fixes the gateway and storage mode for the process
        lifetime; later calls asking for something else get the existing
        instance.
        """
        from .config import get_config
        from .persistence import PersistenceGateway
        from .storage import StorageMode, create_storage

        instance = cls._instance
        if instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    if gateway is None:
                        config = config or get_config()
                        mode = StorageMode.parse(storage_mode or config.storage_mode)
                        gateway = PersistenceGateway(create_storage(mode, config), mode)
                    cls._instance = cls(gateway)
                instance = cls._instance

        if storage_mode is not None and StorageMode.parse(storage_mode) != instance.storage_mode:
            instance.logger.warning(
                "Storage mode is fixed at %s; ignoring request for %s",
                instance.storage_mode.value, StorageMode.parse(storage_mode).value
            )
        if gateway is not None and gateway is not instance.gateway:
            instance.logger.warning("Notification service is already bound to another gateway")
        return instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide instance (tests only)"""
        with cls._instance_lock:
            cls._instance = None

    # Notification Dispatching

    def send(
        self,
        recipient: Optional["User"],
        notification_type: NotificationType,
        title: str,
        message: str,
        linked_customer: Optional["Customer"] = None,
        linked_account: Optional["Account"] = None
    ) -> Optional[Notification]:
        """
        Append a notification to the recipient's inbox and persist the recipient

        Returns None without doing anything when there is no recipient.

        Raises:
            PersistenceError: The recipient could not be persisted. The
                notification stays in the in-memory inbox.
        """
        if recipient is None:
            return None

        notification = Notification.create(notification_type, title, message,
                                           linked_customer, linked_account)

        with recipient.lock:
            recipient.inbox.append(notification)
            try:
                recipient.persist(self.gateway)
            except PersistenceError:
                self._log_persist_failure(recipient, notification)
                raise
            except Exception as e:
                self._log_persist_failure(recipient, notification)
                raise PersistenceError(
                    f"Failed to persist {recipient.role} {recipient.user_id}: {e}",
                    recipient.role, recipient.user_id
                ) from e

        log_action(
            self.logger, "info", f"Notification sent: {title}",
            user_id=recipient.user_id,
            action="notification.sent",
            resource=notification.notification_id,
            extra={"type": notification_type.value, "account_number": notification.account_number}
        )
        return notification

    def _log_persist_failure(self, recipient: "User", notification: Notification) -> None:
        log_action(
            self.logger, "error",
            "Notification kept in memory but recipient could not be persisted",
            user_id=recipient.user_id,
            action="notification.persist_failed",
            resource=notification.notification_id,
            extra={"type": notification.notification_type.value}
        )

    # Predefined Notification Helpers

    def notify_transaction_receipt(self, user: Optional["User"], tx: "Transaction") -> Optional[Notification]:
        title = "Transaction Completed"
        message = (
            f"Your {tx.transaction_type.value} of ${format_amount(tx.amount)} on "
            f"{tx.transaction_date.strftime('%Y-%m-%d %H:%M')} was successful."
        )
        return self.send(user, NotificationType.TRANSACTION_RECEIPT, title, message)

    def notify_account_request(
        self,
        manager: Optional["User"],
        customer: Optional["Customer"],
        requested_account: Optional["Account"]
    ) -> List[Notification]:
        """
        Tell the manager about a new request and confirm it to the customer

        Both or neither: if any argument is missing nothing is sent.
        """
        log_action(
            self.logger, "debug", "Account request notification received",
            action="notification.account_request",
            extra={
                "customer": repr(customer),
                "requested_account": repr(requested_account),
                "manager": repr(manager),
            }
        )

        if manager is None or customer is None or requested_account is None:
            return []

        sent = []
        title = "New Account Request"
        message = (
            f"Customer {customer.full_name} requested a new "
            f"{requested_account.account_type.name} account."
        )
        sent.append(self.send(manager, NotificationType.ACCOUNT_OPENING_REQUEST, title, message,
                              customer, requested_account))
        self.logger.debug("Account request notification passed to manager %s", manager.user_id)

        sent.append(self.send(customer, NotificationType.INFO, "Request Sent",
                              "Your account request was sent to the manager.",
                              customer, requested_account))
        self.logger.debug("Account request confirmation passed to customer %s", customer.user_id)
        return sent

    def notify_approval(self, customer: Optional["Customer"], approved_account: "Account") -> Optional[Notification]:
        title = "Account Approved"
        message = f"Your account ({approved_account.account_number}) has been approved."
        return self.send(customer, NotificationType.ACCOUNT_APPROVAL, title, message,
                         customer, approved_account)

    def notify_rejection(self, customer: Optional["Customer"], reason: str,
                         rejected_account: "Account") -> Optional[Notification]:
        title = "Account Rejected"
        message = f"Your account request was declined: {reason}"
        return self.send(customer, NotificationType.ACCOUNT_REJECTION, title, message,
                         customer, rejected_account)

    def notify_new_message(self, user: Optional["User"], from_name: str) -> Optional[Notification]:
        title = "New Message"
        message = f"You received a new message from {from_name}."
        return self.send(user, NotificationType.NEW_MESSAGE, title, message)

    def notify_security_alert(self, user: Optional["User"], details: str) -> Optional[Notification]:
        title = "Security Alert"
        message = f"Important security notice: {details}"
        return self.send(user, NotificationType.SECURITY_ALERT, title, message)

    def notify_system_update(self, user: Optional["User"], update_details: str) -> Optional[Notification]:
        title = "System Update"
        message = f"Recent changes: {update_details}"
        return self.send(user, NotificationType.SYSTEM_UPDATE, title, message)

    def notify_custom(self, user: Optional["User"], title: str, message: str) -> Optional[Notification]:
        return self.send(user, NotificationType.CUSTOM, title, message)

    # Inbox Helpers

    def get_all_notifications(self, user: Optional["User"]) -> List[Notification]:
        """Copy of the inbox, newest first"""
        if user is None or getattr(user, "inbox", None) is None:
            return []
        notifications = user.inbox.snapshot()
        # Reverse first so equal timestamps keep newest-appended first
        notifications.reverse()
        notifications.sort(key=lambda n: n.timestamp, reverse=True)
        return notifications

    def get_unread_notifications(self, user: Optional["User"]) -> List[Notification]:
        """Unread entries in inbox order"""
        if user is None or getattr(user, "inbox", None) is None:
            return []
        return user.inbox.unread()

    def get_unread_count(self, user: Optional["User"]) -> int:
        return len(self.get_unread_notifications(user))

    def mark_all_as_read(self, user: Optional["User"]) -> None:
        if user is None or getattr(user, "inbox", None) is None:
            return
        with user.lock:
            if user.inbox.mark_all_read():
                user.persist(self.gateway)

    def clear_inbox(self, user: Optional["User"]) -> None:
        if user is None or getattr(user, "inbox", None) is None:
            return
        with user.lock:
            if user.inbox.clear():
                user.persist(self.gateway)
