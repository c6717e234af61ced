"""Background notification of subscribers after event changes."""

import logging

from statuspage.api.events.models import Event, EventUpdate
from statuspage.db.database import get_async_session
from statuspage.db.repositories import SubscriberRepository
from statuspage.notifications.dispatcher import NotificationDispatcher
from statuspage.notifications.mailer import EmailSender
from statuspage.notifications.repository import SubscriberRepositoryProtocol
from statuspage.notifications.telegram import TelegramSender

logger = logging.getLogger(__name__)


def build_dispatcher(subscribers: SubscriberRepositoryProtocol) -> NotificationDispatcher:
    """Dispatcher wired with every configured sender."""
    return NotificationDispatcher(subscribers, EmailSender(), TelegramSender())


def event_created_message(event: Event) -> tuple[str, str]:
    """Subject and body announcing a new event."""
    subject = f"[{event.type.value}] {event.title}"
    return subject, event.description


def event_update_message(event: Event, update: EventUpdate) -> tuple[str, str]:
    """Subject and body announcing a status update."""
    subject = f"[{event.type.value}] {event.title}: {update.status.value}"
    return subject, update.message


async def notify_subscribers(service_ids: list[str], subject: str, body: str) -> int:
    """Dispatch a message using a session of its own.

    Runs as a background task once the request that changed the event has
    committed, so the request session is already closed.
    """
    async with get_async_session() as session:
        dispatcher = build_dispatcher(SubscriberRepository(session))
        try:
            return await dispatcher.dispatch(service_ids, subject, body)
        except Exception:
            logger.exception("Notification dispatch failed", extra={"subject": subject})
            return 0
