import hashlib
import hmac
import json
import time

import pytest
import stripe

from app.core.exceptions import PaymentGatewayError
from app.services.payments import StripeGateway, checkout_order_fields

WEBHOOK_SECRET = "whsec_test_secret"


def _sign(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def gateway():
    return StripeGateway("sk_test_key", WEBHOOK_SECRET, currency="eur", product_name="Pizza")


@pytest.fixture
def completed_payload():
    return json.dumps(
        {
            "id": "evt_123",
            "object": "event",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_test_999",
                    "object": "checkout.session",
                    "metadata": {"userId": "user_7"},
                }
            },
        }
    )


def test_create_checkout_session_params(gateway, monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return {"id": "cs_1", "url": "https://checkout.stripe.com/c/pay/cs_1"}

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    session = gateway.create_checkout_session(1500, "user_1", "https://ok", "https://no")

    assert session["id"] == "cs_1"
    assert captured["api_key"] == "sk_test_key"
    assert captured["mode"] == "payment"
    assert captured["success_url"] == "https://ok"
    assert captured["cancel_url"] == "https://no"
    assert captured["metadata"] == {"userId": "user_1"}
    assert captured["client_reference_id"] == "user_1"
    assert captured["line_items"] == [
        {
            "price_data": {"unit_amount": 1500, "currency": "eur", "product_data": {"name": "Pizza"}},
            "quantity": 1,
        }
    ]


def test_create_checkout_session_returns_none_on_stripe_error(gateway, monkeypatch):
    def fake_create(**kwargs):
        raise stripe.InvalidRequestError("Invalid integer: NaN", "line_items", http_status=400)

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    assert gateway.create_checkout_session(0, "user_1", "https://ok", "https://no") is None


def test_create_payment_intent_params(gateway, monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return {"client_secret": "pi_1_secret"}

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    intent = gateway.create_payment_intent(999, "user_1")

    assert intent["client_secret"] == "pi_1_secret"
    assert captured == {
        "api_key": "sk_test_key",
        "amount": 999,
        "currency": "usd",
        "automatic_payment_methods": {"enabled": True},
        "metadata": {"userId": "user_1"},
    }


def test_create_payment_intent_error_keeps_http_status(gateway, monkeypatch):
    def fake_create(**kwargs):
        raise stripe.InvalidRequestError("Amount must be at least $0.50 usd", "amount", http_status=400)

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    with pytest.raises(PaymentGatewayError) as exc_info:
        gateway.create_payment_intent(1, "user_1")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Amount must be at least $0.50 usd"


def test_create_payment_intent_error_without_status_is_500(gateway, monkeypatch):
    def fake_create(**kwargs):
        raise stripe.APIConnectionError("Network down")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    with pytest.raises(PaymentGatewayError) as exc_info:
        gateway.create_payment_intent(100, "user_1")
    assert exc_info.value.status_code == 500


def test_verify_webhook_accepts_valid_signature(gateway, completed_payload):
    event = gateway.verify_webhook(completed_payload.encode(), _sign(completed_payload))
    assert event is not None
    assert event["type"] == "checkout.session.completed"
    assert checkout_order_fields(event) == ("user_7", "cs_test_999")


def test_verify_webhook_rejects_wrong_secret(gateway, completed_payload):
    header = _sign(completed_payload, secret="whsec_other")
    assert gateway.verify_webhook(completed_payload.encode(), header) is None


def test_verify_webhook_rejects_tampered_body(gateway, completed_payload):
    header = _sign(completed_payload)
    tampered = completed_payload.replace("user_7", "user_8")
    assert gateway.verify_webhook(tampered.encode(), header) is None


def test_verify_webhook_rejects_stale_timestamp(gateway, completed_payload):
    header = _sign(completed_payload, timestamp=int(time.time()) - 3600)
    assert gateway.verify_webhook(completed_payload.encode(), header) is None


def test_verify_webhook_rejects_missing_header(gateway, completed_payload):
    assert gateway.verify_webhook(completed_payload.encode(), None) is None


def test_verify_webhook_rejects_signed_garbage(gateway):
    payload = "not json"
    assert gateway.verify_webhook(payload.encode(), _sign(payload)) is None
