"""Event, event update and template models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """Kind of event; fixed for the lifetime of an event."""

    INCIDENT = "incident"
    MAINTENANCE = "maintenance"


class EventStatus(str, Enum):
    """Event status; legality depends on the event type."""

    # Incident
    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    MONITORING = "monitoring"
    RESOLVED = "resolved"

    # Maintenance
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Severity(str, Enum):
    """Incident severity."""

    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Event:
    """Incident or maintenance record."""

    id: str
    title: str
    type: EventType
    status: EventStatus
    description: str
    created_by: str
    severity: Optional[Severity] = None
    started_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    scheduled_start_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    notify_subscribers: bool = False
    template_id: Optional[str] = None
    service_ids: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class EventUpdate:
    """Immutable entry in an event's status history."""

    id: str
    event_id: str
    status: EventStatus
    message: str
    created_by: str
    notify_subscribers: bool = False
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class EventTemplate:
    """Reusable title/body template for events."""

    id: str
    slug: str
    type: EventType
    title_template: str
    body_template: str
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class TemplateData:
    """Values available to template placeholders."""

    service_name: str = ""
    service_group_name: str = ""
    started_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None


@dataclass
class EventFilters:
    """Filter options for listing events."""

    type: Optional[EventType] = None
    status: Optional[EventStatus] = None
    limit: int = 50
    offset: int = 0
