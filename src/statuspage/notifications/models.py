"""Notification channel and subscriber models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ChannelType(str, Enum):
    """Delivery channel type."""

    EMAIL = "email"
    TELEGRAM = "telegram"


@dataclass
class NotificationChannel:
    """A user's delivery target."""

    id: str
    user_id: str
    type: str
    target: str
    is_enabled: bool = True
    is_verified: bool = False

    @property
    def is_deliverable(self) -> bool:
        return self.is_enabled and self.is_verified


@dataclass
class Subscriber:
    """A user subscribed to at least one of the affected services."""

    user_id: str
    channels: list[NotificationChannel] = field(default_factory=list)


@dataclass(frozen=True)
class Notification:
    """A rendered message addressed to one channel target."""

    to: str
    subject: str
    body: str


@dataclass
class Subscription:
    """The set of services a user wants to hear about."""

    id: str
    user_id: str
    service_ids: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
