"""Sender interface implemented by each delivery channel."""

from typing import Protocol

from statuspage.notifications.models import Notification


class Sender(Protocol):
    """Delivers a notification over one channel type."""

    @property
    def channel_type(self) -> str: ...

    async def send(self, notification: Notification) -> None:
        """Deliver ``notification``; raise on failure."""
        ...
