"""Fan-out of event notifications to subscribers."""

import logging
from typing import Optional

from statuspage.notifications.models import Notification
from statuspage.notifications.repository import SubscriberRepositoryProtocol
from statuspage.notifications.sender import Sender

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Routes a message to every deliverable channel of the subscribers of
    the affected services.

    Only channels that are both enabled and verified receive messages. A
    failing send is logged and does not stop the remaining deliveries.
    """

    def __init__(self, subscribers: SubscriberRepositoryProtocol, *senders: Sender):
        self._subscribers = subscribers
        self._senders: dict[str, Sender] = {s.channel_type: s for s in senders}

    def sender_for(self, channel_type: str) -> Optional[Sender]:
        return self._senders.get(channel_type)

    async def dispatch(self, service_ids: list[str], subject: str, body: str) -> int:
        """Send ``subject``/``body`` to subscribers of ``service_ids``.

        Returns:
            Number of successful deliveries
        """
        if not service_ids:
            return 0

        subscribers = await self._subscribers.get_subscribers_for_services(service_ids)
        sent = 0
        for subscriber in subscribers:
            for channel in subscriber.channels:
                if not channel.is_deliverable:
                    continue

                sender = self.sender_for(channel.type)
                if sender is None:
                    logger.warning(
                        "No sender for channel type",
                        extra={"channel_type": channel.type, "channel_id": channel.id},
                    )
                    continue

                try:
                    await sender.send(Notification(to=channel.target, subject=subject, body=body))
                except Exception:
                    logger.exception(
                        "Failed to send notification",
                        extra={"channel_type": channel.type, "channel_id": channel.id},
                    )
                    continue
                sent += 1

        logger.info(
            "Notifications dispatched",
            extra={"subscribers": len(subscribers), "sent": sent},
        )
        return sent
