"""Subscription API schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from statuspage.notifications.models import Subscription


class SubscriptionUpdate(BaseModel):
    """Replace the set of subscribed services."""

    service_ids: list[str] = Field(default_factory=list, max_length=500)


class SubscriptionResponse(BaseModel):
    """Subscription response."""

    id: str
    user_id: str
    service_ids: list[str]
    created_at: Optional[datetime] = None

    @classmethod
    def from_subscription(cls, subscription: Subscription) -> "SubscriptionResponse":
        return cls(
            id=subscription.id,
            user_id=subscription.user_id,
            service_ids=subscription.service_ids,
            created_at=subscription.created_at,
        )
