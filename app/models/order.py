import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return uuid.uuid4().hex


class Order(BaseModel):
    """Stripe checkout session id -> user id, written once per completed checkout."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id, alias="_id")
    user_id: str | None = None
    order_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)
