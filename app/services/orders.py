"""Order records: one insert per completed Stripe checkout."""

from motor.motor_asyncio import AsyncIOMotorClient

from app.core.logging import get_logger
from app.models.order import Order

log = get_logger(__name__)


class OrderStore:
    def __init__(self, client: AsyncIOMotorClient):
        self.client = client

    async def create_order(self, database_id: str, collection_id: str, user_id: str | None, order_id: str) -> Order:
        """
        Insert a new order document into client[database_id][collection_id].
        Always an insert with a fresh id; redelivered webhooks produce a second document.
        """
        order = Order(user_id=user_id, order_id=order_id)
        collection = self.client[database_id][collection_id]
        await collection.insert_one(order.to_document())
        log.info("order_created", user_id=user_id, order_id=order_id, document_id=order.id)
        return order

    def close(self) -> None:
        self.client.close()
