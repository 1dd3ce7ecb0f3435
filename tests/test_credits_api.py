"""Tests for the credit ledger HTTP API."""

import logging
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from credit_ledger.core.exceptions import InvariantViolationError, StoreTimeoutError
from credit_ledger.main import app
from tests.conftest import OTHER_STORE_ID

ACTOR_HEADERS = {"X-User-Id": "u-1", "X-User-Name": "Ana Cajera"}


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def _create_credit(client, **overrides):
    body = {
        "client_id": "client-1",
        "client_name": "Maria Lopez",
        "invoice_number": "FAC-00001",
        "total_amount": "100000",
    }
    body.update(overrides)
    response = client.post("/v1/credits/", json=body, headers=ACTOR_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


def _pay(client, credit_id, amount, **extra):
    return client.post(
        f"/v1/credits/{credit_id}/payments",
        json={"amount": amount, **extra},
        headers=ACTOR_HEADERS,
    )


class TestCreditsApi:
    def test_create_credit(self, client):
        data = _create_credit(client, sale_id="sale-1", due_date="2026-12-31")

        assert float(data["total_amount"]) == 100000
        assert float(data["paid_amount"]) == 0
        assert float(data["pending_amount"]) == 100000
        assert data["status"] == "pending"
        assert data["current_status"] == "pending"
        assert data["created_by"] == "u-1"
        assert data["store_id"] == "00000000-0000-0000-0000-000000000001"

    def test_create_requires_actor(self, client):
        response = client.post(
            "/v1/credits/",
            json={
                "client_id": "c",
                "client_name": "C",
                "invoice_number": "F-1",
                "total_amount": "10",
            },
        )
        assert response.status_code == 401

    def test_create_rejects_zero_total(self, client):
        response = client.post(
            "/v1/credits/",
            json={
                "client_id": "c",
                "client_name": "C",
                "invoice_number": "F-1",
                "total_amount": "0",
            },
            headers=ACTOR_HEADERS,
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_duplicate_invoice(self, client):
        _create_credit(client)
        response = client.post(
            "/v1/credits/",
            json={
                "client_id": "client-2",
                "client_name": "Pedro",
                "invoice_number": "FAC-00001",
                "total_amount": "5",
            },
            headers=ACTOR_HEADERS,
        )
        assert response.status_code == 422

    def test_duplicate_invoice_lost_race(self, client):
        _create_credit(client)
        with patch(
            "credit_ledger.repositories.credit_repository.CreditRepository.get_by_invoice_number",
            return_value=None,
        ):
            response = client.post(
                "/v1/credits/",
                json={
                    "client_id": "client-2",
                    "client_name": "Pedro",
                    "invoice_number": "FAC-00001",
                    "total_amount": "5",
                },
                headers=ACTOR_HEADERS,
            )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_get_credit_and_by_invoice(self, client):
        created = _create_credit(client, invoice_number="FAC-42")

        assert client.get(f"/v1/credits/{created['id']}").json()["id"] == created["id"]
        by_invoice = client.get("/v1/credits/by_invoice/FAC-42")
        assert by_invoice.status_code == 200
        assert by_invoice.json()["id"] == created["id"]

    def test_get_unknown_credit(self, client):
        response = client.get(f"/v1/credits/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_store_header_isolates_credits(self, client):
        created = _create_credit(client)
        response = client.get(
            f"/v1/credits/{created['id']}", headers={"X-Store-Id": str(OTHER_STORE_ID)}
        )
        assert response.status_code == 404

    def test_invalid_store_header(self, client):
        response = client.get("/v1/credits/", headers={"X-Store-Id": "not-a-uuid"})
        assert response.status_code == 400

    def test_list_credits_with_total_count(self, client):
        _create_credit(client, invoice_number="A")
        _create_credit(client, invoice_number="B", client_id="client-2")

        response = client.get("/v1/credits/", params={"limit": 1})
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        assert len(response.json()) == 1

        filtered = client.get("/v1/credits/", params={"client_id": "client-2"})
        assert [c["invoice_number"] for c in filtered.json()] == ["B"]

    def test_list_overdue(self, client):
        _create_credit(client, invoice_number="LATE", due_date="2020-01-01")
        _create_credit(client, invoice_number="NODATE")

        response = client.get("/v1/credits/", params={"status": "overdue"})
        data = response.json()
        assert [c["invoice_number"] for c in data] == ["LATE"]
        assert data[0]["status"] == "pending"
        assert data[0]["current_status"] == "overdue"


class TestPaymentsApi:
    def test_apply_payment(self, client):
        credit = _create_credit(client)

        response = _pay(client, credit["id"], "40000", payment_method="transfer")

        assert response.status_code == 201
        data = response.json()
        assert float(data["credit"]["paid_amount"]) == 40000
        assert float(data["credit"]["pending_amount"]) == 60000
        assert data["credit"]["status"] == "partial"
        assert data["credit"]["last_payment_user_name"] == "Ana Cajera"
        assert data["payment_record"]["payment_method"] == "transfer"
        assert data["payment_record"]["status"] == "active"

    def test_overpayment(self, client):
        credit = _create_credit(client, total_amount="50000")

        response = _pay(client, credit["id"], "70000")

        assert response.status_code == 422
        assert response.json()["code"] == "OVERPAYMENT"
        assert "exceeds" in response.json()["detail"]
        after = client.get(f"/v1/credits/{credit['id']}").json()
        assert float(after["paid_amount"]) == 0
        assert after["status"] == "pending"

    def test_payment_on_cancelled_credit(self, client):
        credit = _create_credit(client)
        client.post(
            f"/v1/credits/{credit['id']}/cancel", json={"reason": "return"}, headers=ACTOR_HEADERS
        )

        response = _pay(client, credit["id"], "10")

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"

    def test_payment_history_and_cancel(self, client):
        credit = _create_credit(client)
        _pay(client, credit["id"], "40000", payment_date="2026-03-01T10:00:00Z")
        second = _pay(client, credit["id"], "60000", payment_date="2026-03-02T10:00:00Z").json()
        assert second["credit"]["status"] == "completed"

        history = client.get(f"/v1/credits/{credit['id']}/payments").json()
        assert [float(p["amount"]) for p in history] == [60000, 40000]

        response = client.post(
            f"/v1/payment_records/{second['payment_record']['id']}/cancel",
            json={"reason": "payment bounced"},
            headers=ACTOR_HEADERS,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["credit"]["status"] == "partial"
        assert float(data["credit"]["pending_amount"]) == 60000
        assert data["payment_record"]["status"] == "cancelled"
        assert data["payment_record"]["cancellation_reason"] == "payment bounced"

    def test_cancel_credit(self, client):
        credit = _create_credit(client)
        _pay(client, credit["id"], "1000")

        response = client.post(
            f"/v1/credits/{credit['id']}/cancel",
            json={"reason": "cliente no recogió producto"},
            headers=ACTOR_HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["credit"]["status"] == "cancelled"
        assert float(data["credit"]["pending_amount"]) == 99000
        assert float(data["total_collected"]) == 1000

        again = client.post(
            f"/v1/credits/{credit['id']}/cancel", json={"reason": "again"}, headers=ACTOR_HEADERS
        )
        assert again.status_code == 409

    def test_cancel_requires_reason(self, client):
        credit = _create_credit(client)
        response = client.post(
            f"/v1/credits/{credit['id']}/cancel", json={"reason": " "}, headers=ACTOR_HEADERS
        )
        assert response.status_code == 422


class TestErrorMapping:
    def test_invariant_violation_is_generic_500(self, client):
        with patch(
            "credit_ledger.routers.credits.CreditService.get_credit",
            side_effect=InvariantViolationError("paid 5 exceeds total 4", credit_id="x"),
        ):
            response = client.get(f"/v1/credits/{uuid4()}")

        assert response.status_code == 500
        assert response.json() == {
            "detail": "Operation failed, contact support",
            "code": "INVARIANT_VIOLATION",
        }

    def test_invariant_violation_logged_once(self, client, caplog):
        credit = _create_credit(client)
        with patch(
            "credit_ledger.services.payment_service.PaymentRecordRepository.sum_active",
            return_value=Decimal("1"),
        ):
            response = _pay(client, credit["id"], "40000")

        assert response.status_code == 500
        critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
        assert len(critical) == 1
        assert credit["id"] in critical[0].getMessage()

        listed = client.get(f"/v1/credits/{credit['id']}").json()
        assert float(listed["paid_amount"]) == 0

    def test_store_timeout_is_503(self, client):
        with patch(
            "credit_ledger.routers.credits.CreditService.list_credits",
            side_effect=StoreTimeoutError("Ledger store did not respond in time"),
        ):
            response = client.get("/v1/credits/")

        assert response.status_code == 503
        assert response.json()["code"] == "STORE_TIMEOUT"


class TestClientsApi:
    def test_client_summary(self, client):
        first = _create_credit(client, invoice_number="A", total_amount="1000")
        _pay(client, first["id"], "400")
        second = _create_credit(client, invoice_number="B", total_amount="500")
        client.post(
            f"/v1/credits/{second['id']}/cancel", json={"reason": "return"}, headers=ACTOR_HEADERS
        )

        summary = client.get("/v1/clients/client-1/summary").json()
        assert float(summary["pending_amount"]) == 600
        assert summary["status"] == "partial"
        assert summary["credit_count"] == 1
        assert summary["cancelled_count"] == 1
        assert 1 <= summary["score"]["stars"] <= 5

        with_cancelled = client.get(
            "/v1/clients/client-1/summary", params={"include_cancelled": True}
        ).json()
        assert float(with_cancelled["pending_amount"]) == 1100

    def test_unknown_client_summary(self, client):
        assert client.get("/v1/clients/nobody/summary").status_code == 404

    def test_all_clients_summary(self, client):
        _create_credit(client, invoice_number="A", total_amount="100")
        _create_credit(client, invoice_number="B", client_id="client-2", total_amount="900")

        data = client.get("/v1/clients/summary").json()
        assert [s["client_id"] for s in data] == ["client-2", "client-1"]

    def test_client_credits(self, client):
        _create_credit(client, invoice_number="A")
        _create_credit(client, invoice_number="B", client_id="client-2")

        data = client.get("/v1/clients/client-1/credits").json()
        assert [c["invoice_number"] for c in data] == ["A"]


class TestAuditLogsApi:
    def test_lists_activity(self, client):
        credit = _create_credit(client)
        _pay(client, credit["id"], "10")

        data = client.get("/v1/audit_logs/").json()
        assert {entry["action"] for entry in data} == {"credit_created", "credit_payment_applied"}

        filtered = client.get(
            "/v1/audit_logs/", params={"action": "credit_payment_applied"}
        ).json()
        assert len(filtered) == 1
        assert filtered[0]["credit_id"] == credit["id"]
        assert filtered[0]["actor_name"] == "Ana Cajera"
