import os
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

# Required configuration for importing app.main
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_dummy")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")


class FakeGateway:
    """Stands in for StripeGateway; records calls and returns canned Stripe objects."""

    def __init__(self):
        self.session = SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")
        self.intent = SimpleNamespace(client_secret="pi_123_secret_456")
        self.intent_error: Exception | None = None
        self.event = None
        self.checkout_calls = []
        self.intent_calls = []
        self.webhook_calls = []

    def create_checkout_session(self, amount, user_id, success_url, failure_url):
        self.checkout_calls.append((amount, user_id, success_url, failure_url))
        return self.session

    def create_payment_intent(self, amount, user_id, currency="usd"):
        self.intent_calls.append((amount, user_id, currency))
        if self.intent_error:
            raise self.intent_error
        return self.intent

    def verify_webhook(self, payload, signature):
        self.webhook_calls.append((payload, signature))
        return self.event


class FakeOrderStore:
    def __init__(self):
        self.orders = []
        self.error: Exception | None = None

    async def create_order(self, database_id, collection_id, user_id, order_id):
        if self.error:
            raise self.error
        self.orders.append((database_id, collection_id, user_id, order_id))

    def close(self):
        pass


@pytest.fixture
def settings():
    from app.core.config import Settings
    return Settings(
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret="whsec_test_dummy",
        mongodb_uri="mongodb://localhost:27017",
        endpoint="https://functions.example.com/v1",
        project_id="proj_42",
        function_id="fn_stripe",
        database_id="shop",
        collection_id="orders_2024",
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def order_store() -> FakeOrderStore:
    return FakeOrderStore()


@pytest.fixture
def app(settings, gateway, order_store):
    from app.main import create_app
    return create_app(settings, gateway=gateway, order_store=order_store)


@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False, raise_server_exceptions=False) as c:
        yield c
