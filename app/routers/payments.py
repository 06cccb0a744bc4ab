from typing import Any

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import ORJSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.exceptions import PaymentGatewayError
from app.core.logging import get_logger
from app.core.money import coerce_float, is_valid_amount, to_minor_units
from app.deps import get_app_settings, get_gateway, get_order_store
from app.services.orders import OrderStore
from app.services.payments import CHECKOUT_COMPLETED, StripeGateway, checkout_order_fields

router = APIRouter()
log = get_logger(__name__)


async def _json_body(request: Request) -> dict[str, Any]:
    """Request JSON as a dict; anything unparseable or non-object reads as {}."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _fallback_url(request: Request) -> str:
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}/"


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


@router.post("/checkout")
async def checkout(
    request: Request,
    x_user_id: str | None = Header(None, alias="x-user-id"),
    gateway: StripeGateway = Depends(get_gateway),
):
    """Start a hosted Stripe checkout and redirect the browser to it (or to failureUrl)."""
    body = await _json_body(request)
    fallback = _fallback_url(request)
    success_url = body.get("successUrl") or fallback
    failure_url = body.get("failureUrl") or fallback

    if not x_user_id:
        log.error("missing_user_id", path="/checkout")
        return _see_other(failure_url)

    amount = to_minor_units(body.get("amount"), parse=coerce_float)
    if amount is None:
        log.error("invalid_amount", path="/checkout", amount=body.get("amount"))
        return _see_other(failure_url)

    session = await run_in_threadpool(gateway.create_checkout_session, amount, x_user_id, success_url, failure_url)
    if not session:
        log.error("checkout_session_failed", user_id=x_user_id)
        return _see_other(failure_url)

    log.info("checkout_session_created", user_id=x_user_id, session_id=session.id)
    return _see_other(session.url)


@router.post("/create-intent")
async def create_intent(
    request: Request,
    x_user_id: str | None = Header(None, alias="x-user-id"),
    settings: Settings = Depends(get_app_settings),
    gateway: StripeGateway = Depends(get_gateway),
):
    """Create a PaymentIntent for a client-side payment flow; returns its client_secret."""
    body = await _json_body(request)
    amount = to_minor_units(body.get("amount"))

    if not is_valid_amount(amount):
        log.error("invalid_amount", path="/create-intent", amount=body.get("amount"))
        return ORJSONResponse({"error": "Invalid amount"}, status_code=status.HTTP_400_BAD_REQUEST)

    if not x_user_id:
        log.error("missing_user_id", path="/create-intent")
        return ORJSONResponse({"error": "User ID is required"}, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        intent = await run_in_threadpool(gateway.create_payment_intent, amount, x_user_id, settings.currency)
    except PaymentGatewayError as e:
        log.error("payment_intent_failed", user_id=x_user_id, error=e.message, status_code=e.status_code)
        return ORJSONResponse({"error": e.message}, status_code=e.status_code)
    except Exception as e:
        log.exception("payment_intent_failed", user_id=x_user_id)
        return ORJSONResponse({"error": str(e)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    log.info("payment_intent_created", user_id=x_user_id, amount=amount)
    return ORJSONResponse({"client_secret": intent.client_secret})


@router.post("/webhook")
async def webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    settings: Settings = Depends(get_app_settings),
    gateway: StripeGateway = Depends(get_gateway),
    store: OrderStore = Depends(get_order_store),
):
    """Stripe webhook: checkout.session.completed -> one order document. No dedup on redelivery."""
    payload = await request.body()
    event = gateway.verify_webhook(payload, stripe_signature)
    if event is None:
        log.warning("webhook_rejected")
        return ORJSONResponse({"success": False}, status_code=status.HTTP_401_UNAUTHORIZED)

    log.info("webhook_received", event_id=event["id"], event_type=event["type"])

    if event["type"] == CHECKOUT_COMPLETED:
        user_id, order_id = checkout_order_fields(event)
        # Failures here are not caught; the generic handler turns them into a 500.
        await store.create_order(settings.database_id, settings.collection_id, user_id, order_id)

    return ORJSONResponse({"success": True})
