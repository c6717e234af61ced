"""Incidents, maintenance windows and their templates.

Routers live in ``router``; the service in ``service``.
"""

from statuspage.api.events.models import (
    Event,
    EventFilters,
    EventStatus,
    EventTemplate,
    EventType,
    EventUpdate,
    Severity,
    TemplateData,
)

__all__ = [
    "Event",
    "EventFilters",
    "EventStatus",
    "EventTemplate",
    "EventType",
    "EventUpdate",
    "Severity",
    "TemplateData",
]
