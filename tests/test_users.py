"""
Tests for users and their inboxes
"""

import pytest

from retail_banking.exceptions import ValidationError
from retail_banking.notifications import Notification, NotificationType
from retail_banking.users import BankManager, Customer, Inbox


def make_notification(title="Hello"):
    return Notification.create(NotificationType.INFO, title, "body")


class TestInbox:

    def test_append_and_snapshot(self):
        inbox = Inbox()
        first, second = make_notification("one"), make_notification("two")
        inbox.append(first)
        inbox.append(second)

        snapshot = inbox.snapshot()
        assert snapshot == [first, second]
        snapshot.clear()
        assert len(inbox) == 2

    def test_mark_all_read_counts_changes(self):
        inbox = Inbox([make_notification(), make_notification()])
        assert inbox.mark_all_read() == 2
        assert inbox.mark_all_read() == 0
        assert inbox.unread() == []

    def test_clear(self):
        inbox = Inbox([make_notification()])
        assert inbox.clear() == 1
        assert inbox.clear() == 0
        assert len(inbox) == 0

    def test_lock_is_reentrant(self):
        inbox = Inbox()
        with inbox.lock:
            with inbox.lock:
                inbox.append(make_notification())
        assert len(inbox) == 1


class TestUsers:

    def test_names_required(self):
        with pytest.raises(ValidationError):
            Customer("", "Lovelace")
        with pytest.raises(ValidationError):
            BankManager("Bob", "   ")

    def test_full_name_and_ids(self):
        customer = Customer(" Ada ", "Lovelace")
        other = Customer("Ada", "Lovelace")
        assert customer.full_name == "Ada Lovelace"
        assert customer.user_id != other.user_id

    def test_user_lock_is_inbox_lock(self):
        manager = BankManager("Bob", "Boss")
        assert manager.lock is manager.inbox.lock

    def test_to_dict(self):
        customer = Customer("Ada", "Lovelace", user_id="c-1")
        customer.inbox.append(make_notification("stored"))
        data = customer.to_dict()
        assert data["id"] == "c-1"
        assert data["role"] == "customer"
        assert data["account_numbers"] == []
        assert data["inbox"][0]["title"] == "stored"

    def test_manager_to_dict_has_no_accounts(self):
        data = BankManager("Bob", "Boss").to_dict()
        assert data["role"] == "bank_manager"
        assert "account_numbers" not in data
