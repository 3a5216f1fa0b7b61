from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.api.routes import mpesa as mpesa_routes
from app.main import app
from app.services.mpesa_client import PaymentProviderError, StkPushResult, StkStatusResult
from app.services.payment_notifications import PaymentChannelRegistry
from tests.api.helpers import FakeSessionFactory

CALLBACK_TOKEN = "cb_token"


def _success_callback() -> dict[str, object]:
    return {
        "Body": {
            "stkCallback": {
                "MerchantRequestID": "29115-34620561-1",
                "CheckoutRequestID": "ws_CO_1",
                "ResultCode": 0,
                "ResultDesc": "The service request is processed successfully.",
                "CallbackMetadata": {
                    "Item": [
                        {"Name": "Amount", "Value": 500},
                        {"Name": "MpesaReceiptNumber", "Value": "NLJ7RT61SV"},
                        {"Name": "PhoneNumber", "Value": 254712345678},
                    ]
                },
            }
        }
    }


class _Channel:
    def __init__(self) -> None:
        self.sent: list[Any] = []

    async def send_json(self, data: Any, mode: str = "text") -> None:
        self.sent.append(data)


class _FakeMpesaClient:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[dict[str, Any]] = []

    async def initiate_stk_push(self, *, phone: str, amount: int) -> StkPushResult:
        self.calls.append({"phone": phone, "amount": amount})
        if self.fail:
            raise PaymentProviderError("Failed to initiate STK push")
        return StkPushResult(
            checkout_request_id="ws_CO_9",
            merchant_request_id="mr_9",
            response_code="0",
            customer_message="Success. Request accepted for processing",
            raw={},
        )

    async def query_stk_status(self, *, checkout_request_id: str) -> StkStatusResult:
        return StkStatusResult(
            checkout_request_id=checkout_request_id,
            result_code=1037,
            result_desc="DS timeout user cannot be reached",
            raw={},
        )


@pytest.fixture
def registry(monkeypatch) -> PaymentChannelRegistry:
    channels = PaymentChannelRegistry()
    monkeypatch.setattr(mpesa_routes, "payment_channels", channels)
    return channels


@pytest.fixture
def recorded(monkeypatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    async def fake_record(session, **kwargs: Any) -> bool:
        calls.append(kwargs)
        return True

    monkeypatch.setattr(mpesa_routes, "get_settings", lambda: SimpleNamespace(mpesa_callback_token=CALLBACK_TOKEN))
    monkeypatch.setattr(mpesa_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(mpesa_routes, "record_stk_callback", fake_record)
    return calls


def test_callback_with_wrong_token_is_ignored(recorded, registry) -> None:
    client = TestClient(app)
    response = client.post("/mpesa/callback/wrong", json=_success_callback())

    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}
    assert recorded == []


def test_callback_with_malformed_body_is_ignored(recorded, registry) -> None:
    client = TestClient(app)
    response = client.post(f"/mpesa/callback/{CALLBACK_TOKEN}", json={"Body": {}})

    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}
    assert recorded == []


def test_callback_with_invalid_json_is_ignored(recorded, registry) -> None:
    client = TestClient(app)
    response = client.post(
        f"/mpesa/callback/{CALLBACK_TOKEN}",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}


def test_callback_records_receipt_and_notifies_channel(recorded, registry) -> None:
    channel = _Channel()
    registry.register("ws_CO_1", channel)

    client = TestClient(app)
    response = client.post(f"/mpesa/callback/{CALLBACK_TOKEN}", json=_success_callback())

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert len(recorded) == 1
    assert recorded[0]["callback"].checkout_request_id == "ws_CO_1"
    assert channel.sent == [
        {
            "status": "success",
            "message": "Payment was successful",
            "data": {"phone": "254712345678", "amount": 500, "transaction_id": "NLJ7RT61SV"},
        }
    ]


def test_callback_without_listener_still_acknowledges(recorded, registry) -> None:
    client = TestClient(app)
    response = client.post(f"/mpesa/callback/{CALLBACK_TOKEN}", json=_success_callback())

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_callback_persist_failure_alerts_and_asks_for_retry(monkeypatch, recorded, registry) -> None:
    alerts: list[dict[str, Any]] = []

    async def failing_record(session, **kwargs: Any) -> bool:
        raise RuntimeError("db down")

    async def fake_alert(*, event: str, payload: dict[str, object]) -> bool:
        alerts.append({"event": event, "payload": payload})
        return True

    monkeypatch.setattr(mpesa_routes, "record_stk_callback", failing_record)
    monkeypatch.setattr(mpesa_routes, "send_ops_alert", fake_alert)

    client = TestClient(app)
    response = client.post(f"/mpesa/callback/{CALLBACK_TOKEN}", json=_success_callback())

    assert response.status_code == 503
    assert response.json() == {"status": "retry"}
    assert alerts == [
        {"event": "mpesa_callback_persist_failed", "payload": {"checkout_request_id": "ws_CO_1"}}
    ]


def test_stk_push_uses_provider_client(account_identity) -> None:
    fake_client = _FakeMpesaClient()
    app.dependency_overrides[mpesa_routes.get_mpesa_client] = lambda: fake_client
    try:
        client = TestClient(app)
        response = client.post("/mpesa/stk", json={"phone": "0712345678", "amount": 500})
    finally:
        app.dependency_overrides.pop(mpesa_routes.get_mpesa_client, None)

    assert response.status_code == 200
    assert response.json()["data"]["checkout_request_id"] == "ws_CO_9"
    assert fake_client.calls == [{"phone": "0712345678", "amount": 500}]


def test_stk_push_provider_failure_returns_502(account_identity) -> None:
    app.dependency_overrides[mpesa_routes.get_mpesa_client] = lambda: _FakeMpesaClient(fail=True)
    try:
        client = TestClient(app)
        response = client.post("/mpesa/stk", json={"phone": "0712345678", "amount": 500})
    finally:
        app.dependency_overrides.pop(mpesa_routes.get_mpesa_client, None)

    assert response.status_code == 502
    assert response.json()["code"] == "E_PAYMENT_PROVIDER"


def test_payment_status_maps_result_code_and_notifies(account_identity, registry) -> None:
    channel = _Channel()
    registry.register("ws_CO_5", channel)
    app.dependency_overrides[mpesa_routes.get_mpesa_client] = lambda: _FakeMpesaClient()
    try:
        client = TestClient(app)
        response = client.post("/mpesa/payment-status", json={"checkout_request_id": "ws_CO_5"})
    finally:
        app.dependency_overrides.pop(mpesa_routes.get_mpesa_client, None)

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "timedout"
    assert channel.sent[0]["status"] == "timedout"
