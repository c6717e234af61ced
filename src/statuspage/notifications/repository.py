"""Storage interfaces for subscriptions and notification fan-out."""

from typing import Optional, Protocol

from statuspage.notifications.models import NotificationChannel, Subscriber, Subscription


class SubscriberRepositoryProtocol(Protocol):
    """Read access to subscriptions and their channels."""

    async def get_subscribers_for_services(self, service_ids: list[str]) -> list[Subscriber]: ...


class SubscriptionRepositoryProtocol(Protocol):
    """A user's own subscription."""

    async def get_user_subscription(self, user_id: str) -> Optional[Subscription]: ...

    async def create_subscription(self, subscription: Subscription) -> Subscription: ...

    async def set_subscription_services(
        self, subscription_id: str, service_ids: list[str]
    ) -> None:
        """Replace the service set of a subscription."""
        ...

    async def delete_subscription(self, subscription_id: str) -> bool: ...

    async def commit(self) -> None: ...


class ChannelRepositoryProtocol(Protocol):
    """Creation of delivery channels by operational tooling."""

    async def create_channel(self, channel: NotificationChannel) -> NotificationChannel: ...

    async def list_user_channels(self, user_id: str) -> list[NotificationChannel]: ...

    async def commit(self) -> None: ...
