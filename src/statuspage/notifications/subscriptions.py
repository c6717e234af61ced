"""Subscription management for the calling user."""

import logging
import uuid
from datetime import datetime, timezone

from statuspage.core.errors import storage_errors
from statuspage.notifications.errors import SubscriptionNotFoundError
from statuspage.notifications.models import Subscription
from statuspage.notifications.repository import SubscriptionRepositoryProtocol

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Each user owns at most one subscription, created on first access."""

    def __init__(self, repo: SubscriptionRepositoryProtocol) -> None:
        """Initialize subscription service.

        Args:
            repo: Subscription storage
        """
        self._repo = repo

    async def get_or_create(self, user_id: str) -> Subscription:
        """Get the user's subscription, creating an empty one if missing."""
        async with storage_errors("get subscription"):
            subscription = await self._repo.get_user_subscription(user_id)
        if subscription is not None:
            return subscription

        subscription = Subscription(
            id=str(uuid.uuid4()),
            user_id=user_id,
            service_ids=[],
            created_at=datetime.now(timezone.utc),
        )
        async with storage_errors("create subscription"):
            created = await self._repo.create_subscription(subscription)
            await self._repo.commit()
        return created

    async def update_services(self, user_id: str, service_ids: list[str]) -> Subscription:
        """Replace the services the user is subscribed to."""
        subscription = await self.get_or_create(user_id)
        service_ids = list(dict.fromkeys(service_ids))

        async with storage_errors("set subscription services"):
            await self._repo.set_subscription_services(subscription.id, service_ids)
            await self._repo.commit()

        subscription.service_ids = service_ids
        logger.info(
            "Subscription updated",
            extra={"user_id": user_id, "services": len(service_ids)},
        )
        return subscription

    async def delete(self, user_id: str) -> None:
        """Remove the user's subscription.

        Raises:
            SubscriptionNotFoundError: If the user has none
        """
        async with storage_errors("get subscription"):
            subscription = await self._repo.get_user_subscription(user_id)
        if subscription is None:
            raise SubscriptionNotFoundError()

        async with storage_errors("delete subscription"):
            await self._repo.delete_subscription(subscription.id)
            await self._repo.commit()
