from app.models.order import Order

__all__ = [
    "Order",
]
