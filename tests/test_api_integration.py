"""
Integration tests for the Retail Banking API
Tests end-to-end workflows using FastAPI TestClient
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from retail_banking.api import create_app
from retail_banking.config import RetailBankingConfig
from retail_banking.storage import InMemoryStorage
from retail_banking.system import BankingSystem


@pytest.fixture
def system():
    return BankingSystem(RetailBankingConfig(storage_mode="memory"), InMemoryStorage())


@pytest.fixture
def client(system):
    return TestClient(create_app(system))


@pytest.fixture
def customer_id(client):
    r = client.post("/customers", json={"first_name": "Ada", "last_name": "Lovelace"})
    assert r.status_code == 201
    return r.json()["user_id"]


@pytest.fixture
def manager_id(client):
    r = client.post("/managers", json={"first_name": "Bob", "last_name": "Boss"})
    assert r.status_code == 201
    return r.json()["user_id"]


def submit(client, customer_id, account_type="CHECKING", amount="100", **extra):
    payload = {"customer_id": customer_id, "account_type": account_type, "amount": amount}
    payload.update(extra)
    return client.post("/account-requests", json=payload)


class TestHealthEndpoints:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.headers["X-Correlation-ID"]
        data = r.json()
        assert data["status"] == "healthy"
        assert data["storage_mode"] == "memory"

    def test_correlation_id_is_echoed(self, client):
        r = client.get("/health", headers={"X-Correlation-ID": "req-123"})
        assert r.headers["X-Correlation-ID"] == "req-123"


class TestUsers:

    def test_list_managers(self, client, manager_id):
        r = client.get("/managers")
        assert r.status_code == 200
        assert [m["user_id"] for m in r.json()] == [manager_id]
        assert r.json()[0]["role"] == "bank_manager"

    def test_blank_name_rejected(self, client):
        r = client.post("/customers", json={"first_name": "", "last_name": "X"})
        assert r.status_code == 422


class TestAccountRequestFlow:

    def test_submit_and_approve(self, client, customer_id, manager_id):
        r = submit(client, customer_id, "CREDIT", "5000")
        assert r.status_code == 201
        request = r.json()
        assert request["status"] == "submitted"
        assert request["manager_id"] == manager_id
        number = request["account_number"]

        # Pending accounts are not listed
        assert client.get(f"/customers/{customer_id}/accounts").json() == []

        pending = client.get(f"/managers/{manager_id}/account-requests").json()
        assert [p["account_number"] for p in pending] == [number]

        inbox = client.get(f"/users/{manager_id}/notifications").json()
        assert inbox["unread_count"] == 1
        assert inbox["notifications"][0]["notification_type"] == "ACCOUNT_OPENING_REQUEST"

        r = client.post(f"/account-requests/{number}/approve", json={"manager_id": manager_id})
        assert r.status_code == 200
        assert r.json()["status"] == "approved"

        accounts = client.get(f"/customers/{customer_id}/accounts").json()
        assert len(accounts) == 1
        assert accounts[0]["active"] is True
        assert accounts[0]["available_balance"] == "5000"
        assert accounts[0]["credit_limit"] == "5000"

        inbox = client.get(f"/users/{customer_id}/notifications").json()
        latest = inbox["notifications"][0]
        assert latest["notification_type"] == "ACCOUNT_APPROVAL"
        assert number in latest["message"]

        r = client.post(f"/account-requests/{number}/approve")
        assert r.status_code == 400

    def test_reject(self, client, customer_id, manager_id):
        number = submit(client, customer_id, "SAVINGS", "1000").json()["account_number"]

        r = client.post(f"/account-requests/{number}/reject", json={"reason": "Incomplete"})
        assert r.status_code == 200
        assert r.json()["decision_reason"] == "Incomplete"
        assert client.get(f"/customers/{customer_id}/accounts").json() == []
        assert client.get(f"/managers/{manager_id}/account-requests").json() == []

    def test_validation_errors(self, client, customer_id, manager_id):
        assert submit(client, customer_id, "CREDIT", "0").status_code == 400
        assert submit(client, customer_id, "PLATINUM", "10").status_code == 400
        assert submit(client, customer_id, "CURRENCY", "10").status_code == 400
        assert submit(client, customer_id, "CHECKING", "abc").status_code == 400
        assert submit(client, customer_id, "CREDIT", "5e3").status_code == 400
        r = client.get(f"/customers/{customer_id}/accounts", params={"min_balance": "12abc"})
        assert r.status_code == 400

    def test_no_manager(self, client, customer_id):
        r = submit(client, customer_id)
        assert r.status_code == 400

    def test_unknown_ids(self, client, manager_id):
        assert submit(client, "nobody").status_code == 404
        assert client.post("/account-requests/CHK-NONE/approve").status_code == 404
        assert client.get("/users/nobody/notifications").status_code == 404

    def test_listing_filters_and_sort(self, client, system, customer_id, manager_id):
        numbers = []
        for account_type, amount in [("CHECKING", "100"), ("SAVINGS", "500"), ("CHECKING", "50")]:
            number = submit(client, customer_id, account_type, amount).json()["account_number"]
            client.post(f"/account-requests/{number}/approve")
            numbers.append(number)

        r = client.get(f"/customers/{customer_id}/accounts", params={"min_balance": "100", "sort": "balance"})
        assert [a["account_number"] for a in r.json()] == [numbers[0], numbers[1]]

        r = client.get(f"/customers/{customer_id}/accounts", params={"account_type": "checking"})
        assert [a["account_number"] for a in r.json()] == [numbers[0], numbers[2]]

    def test_persistence_failure_is_503(self, client, system, customer_id, manager_id):
        with patch.object(system.storage, "save", side_effect=IOError("disk full")):
            r = submit(client, customer_id)
        assert r.status_code == 503
        assert r.json()["persisted"] is False


class TestInbox:

    def test_mark_read_and_clear(self, client, customer_id, manager_id):
        submit(client, customer_id)

        inbox = client.get(f"/users/{customer_id}/notifications", params={"unread_only": True}).json()
        assert len(inbox["notifications"]) == 1

        assert client.post(f"/users/{customer_id}/notifications/read").status_code == 204
        inbox = client.get(f"/users/{customer_id}/notifications", params={"unread_only": True}).json()
        assert inbox["unread_count"] == 0
        assert inbox["notifications"] == []

        assert client.delete(f"/users/{customer_id}/notifications").status_code == 204
        assert client.get(f"/users/{customer_id}/notifications").json()["notifications"] == []
