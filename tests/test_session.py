"""
Tests for the session context
"""

import threading

import pytest

from retail_banking.session import current_customer, customer_session, login, logout
from retail_banking.users import Customer


@pytest.fixture(autouse=True)
def signed_out():
    logout()
    yield
    logout()


class TestSession:

    def test_login_logout(self):
        customer = Customer("Ada", "Lovelace")
        assert current_customer() is None
        login(customer)
        assert current_customer() is customer
        logout()
        assert current_customer() is None

    def test_customer_session_restores_previous(self):
        outer, inner = Customer("Ada", "Lovelace"), Customer("Eve", "Other")
        login(outer)
        with customer_session(inner):
            assert current_customer() is inner
        assert current_customer() is outer

    def test_threads_do_not_share_customer(self):
        login(Customer("Ada", "Lovelace"))
        seen = []
        thread = threading.Thread(target=lambda: seen.append(current_customer()))
        thread.start()
        thread.join()
        assert seen == [None]
