"""Stripe checkout sessions, payment intents and webhook verification."""

from typing import Any

import stripe

from app.core.exceptions import PaymentGatewayError
from app.core.logging import get_logger

log = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


class StripeGateway:
    """Thin wrapper over the Stripe SDK. Every call carries its own api_key; stripe.api_key is never set."""

    def __init__(self, secret_key: str, webhook_secret: str, currency: str = "usd", product_name: str = "Order"):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.product_name = product_name

    def create_checkout_session(
        self,
        amount: int,
        user_id: str,
        success_url: str,
        failure_url: str,
    ) -> stripe.checkout.Session | None:
        """Create a hosted checkout session for amount minor units. None when Stripe rejects it."""
        line_item = {
            "price_data": {
                "unit_amount": amount,
                "currency": self.currency,
                "product_data": {"name": self.product_name},
            },
            "quantity": 1,
        }
        try:
            return stripe.checkout.Session.create(
                api_key=self.secret_key,
                payment_method_types=["card"],
                line_items=[line_item],
                mode="payment",
                success_url=success_url,
                cancel_url=failure_url,
                client_reference_id=user_id,
                metadata={"userId": user_id},
            )
        except stripe.StripeError as e:
            log.error("stripe_checkout_error", user_id=user_id, error=str(e), http_status=e.http_status)
            return None

    def create_payment_intent(self, amount: int, user_id: str, currency: str = "usd") -> stripe.PaymentIntent:
        """Create a payment intent with automatic payment methods; Stripe failures keep their HTTP status."""
        try:
            return stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=amount,
                currency=currency,
                automatic_payment_methods={"enabled": True},
                metadata={"userId": user_id},
            )
        except stripe.StripeError as e:
            raise PaymentGatewayError(e.user_message or str(e), status_code=e.http_status) from e

    def verify_webhook(self, payload: bytes, signature: str | None) -> stripe.Event | None:
        """Return the verified event, or None if the signature or payload does not check out."""
        if not signature:
            log.warning("webhook_signature_missing")
            return None
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            log.warning("webhook_invalid_payload", error=str(e))
        except stripe.SignatureVerificationError as e:
            log.warning("webhook_invalid_signature", error=str(e))
        return None


def checkout_order_fields(event: Any) -> tuple[str | None, str]:
    """(user_id, order_id) from a checkout.session.completed event."""
    # stripe.Event supports subscripts but not dict methods.
    session = event["data"]["object"]
    try:
        user_id = session["metadata"]["userId"]
    except (KeyError, TypeError):
        user_id = None
    return user_id, session["id"]
