"""Shared FastAPI dependencies: collaborators built once in create_app and kept on app.state."""

from fastapi import Request

from app.core.config import Settings
from app.services.orders import OrderStore
from app.services.payments import StripeGateway


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> StripeGateway:
    return request.app.state.gateway


def get_order_store(request: Request) -> OrderStore:
    return request.app.state.order_store
