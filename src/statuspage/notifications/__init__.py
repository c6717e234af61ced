"""Notification dispatch to subscriber channels."""

from statuspage.notifications.dispatcher import NotificationDispatcher
from statuspage.notifications.models import (
    ChannelType,
    Notification,
    NotificationChannel,
    Subscriber,
    Subscription,
)
from statuspage.notifications.sender import Sender

__all__ = [
    "ChannelType",
    "Notification",
    "NotificationChannel",
    "NotificationDispatcher",
    "Sender",
    "Subscriber",
    "Subscription",
]
