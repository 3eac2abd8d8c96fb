"""End-to-end HTTP behavior of `POST /api/payment`."""

import uuid
from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from cardpay.services.gateway.client import HttpGatewayClient
from cardpay.services.payment_api.main import create_app
from cardpay.services.payment_api.models import TransactionStatus


@pytest.fixture
def client(make_context):
    return TestClient(create_app(make_context()))


def test_approved_payment(client, stored_rows, payment_payload):
    """Regular card with a configured key is approved and recorded."""

    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Payment successfully processed by external gateway."
    rows = stored_rows()
    assert len(rows) == 1
    assert rows[0].status is TransactionStatus.SUCCESS
    assert rows[0].masked_card_number == "XXXX-XXXX-XXXX-1111"
    assert rows[0].amount == 1000
    assert rows[0].currency == "USD"
    assert rows[0].transaction_uuid == uuid.UUID(body["transaction_id"])


def test_declined_payment_is_200_with_success_false(client, stored_rows, payment_payload):
    payment_payload["card_number"] = "4000000000000002"
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Card declined: insufficient funds (simulation)."
    rows = stored_rows()
    assert rows[0].status is TransactionStatus.FAILED
    assert str(rows[0].transaction_uuid) == body["transaction_id"]


def test_timestamp_is_naive_utc(client, payment_payload):
    body = client.post("/api/payment", json=payment_payload).json()

    assert datetime.fromisoformat(body["timestamp"]).tzinfo is None


def test_zero_amount_is_400(client, gateway, stored_rows, payment_payload):
    payment_payload["amount"] = 0
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Payment amount must be greater than zero."}
    assert gateway.calls == []
    assert stored_rows() == []


def test_short_card_is_400(client, stored_rows, payment_payload):
    payment_payload["card_number"] = "41111111"
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid card number."}
    assert stored_rows() == []


def test_malformed_body_is_400(client, stored_rows, payment_payload):
    payment_payload["amount"] = "a lot"
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body."}
    assert stored_rows() == []


@pytest.mark.parametrize("card_number", ["4111111111111111", "4000000000000002"])
def test_missing_api_key_is_500_without_rows(make_context, stored_rows, payment_payload, card_number):
    client = TestClient(create_app(make_context(api_key="")))
    payment_payload["card_number"] = card_number
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 500
    assert resp.json() == {"error": "API key is missing."}
    assert stored_rows() == []


def test_database_failure_hides_driver_detail(make_context, failing_store, payment_payload):
    client = TestClient(create_app(make_context(store=failing_store)))
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Database operation failed."}
    assert "connection reset" not in resp.text


def test_gateway_failure_is_502(make_context, stored_rows, payment_payload):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = TestClient(create_app(make_context(gateway=HttpGatewayClient(http_client, "http://gateway.test"))))
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 502
    assert resp.json()["error"].startswith("External gateway call failed")
    assert stored_rows() == []


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_metrics_exposes_payment_counters(client, payment_payload):
    client.post("/api/payment", json=payment_payload)
    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert "payment_requests_total" in resp.text
    assert "payment_success_total" in resp.text


class BrokenStore:
    """Store failing with an error outside the SQLAlchemy hierarchy."""

    def record(self, *args, **kwargs):
        raise RuntimeError("driver exploded")


def test_amount_beyond_int32_is_400_before_gateway(client, gateway, stored_rows, payment_payload):
    payment_payload["amount"] = 2**63
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Payment amount is too large."}
    assert gateway.calls == []
    assert stored_rows() == []


def test_largest_int32_amount_is_recorded(client, stored_rows, payment_payload):
    payment_payload["amount"] = 2**31 - 1
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 200
    assert stored_rows()[0].amount == 2**31 - 1


@pytest.mark.parametrize("field", ["expiry_month", "expiry_year"])
def test_expiry_beyond_int32_is_400(client, gateway, payment_payload, field):
    payment_payload[field] = 2**40
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body."}
    assert gateway.calls == []


def test_unexpected_error_is_json_500(make_context, payment_payload):
    client = TestClient(create_app(make_context(store=BrokenStore())), raise_server_exceptions=False)
    resp = client.post("/api/payment", json=payment_payload)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error."}
    assert "driver exploded" not in resp.text
