"""Status rules for incident and maintenance events.

Each event type has a closed set of legal statuses. Transitions among the
legal statuses are unrestricted: an operator may jump straight from
``investigating`` to ``resolved``, and a resolved incident may be moved
back to an earlier status to correct a mistaken resolution.
"""

from datetime import datetime
from typing import Optional, Union

from statuspage.api.events.errors import (
    InvalidEventTypeError,
    InvalidSeverityError,
    InvalidStatusError,
)
from statuspage.api.events.models import EventStatus, EventType, Severity

LEGAL_STATUSES: dict[EventType, frozenset[EventStatus]] = {
    EventType.INCIDENT: frozenset(
        {
            EventStatus.INVESTIGATING,
            EventStatus.IDENTIFIED,
            EventStatus.MONITORING,
            EventStatus.RESOLVED,
        }
    ),
    EventType.MAINTENANCE: frozenset(
        {
            EventStatus.SCHEDULED,
            EventStatus.IN_PROGRESS,
            EventStatus.COMPLETED,
        }
    ),
}

RESOLVED_STATUSES: frozenset[EventStatus] = frozenset(
    {EventStatus.RESOLVED, EventStatus.COMPLETED}
)


def parse_event_type(value: Union[EventType, str]) -> EventType:
    """Coerce ``value`` into an EventType.

    Raises:
        InvalidEventTypeError: If the value is not a known type
    """
    try:
        return EventType(value)
    except ValueError:
        raise InvalidEventTypeError(f"invalid event type: {value}")


def parse_status(value: Union[EventStatus, str]) -> EventStatus:
    """Coerce ``value`` into an EventStatus.

    Raises:
        InvalidStatusError: If the value is not a known status
    """
    try:
        return EventStatus(value)
    except ValueError:
        raise InvalidStatusError()


def is_valid_for_type(status: Union[EventStatus, str], event_type: Union[EventType, str]) -> bool:
    """Check whether ``status`` belongs to the legal set of ``event_type``."""
    try:
        return EventStatus(status) in LEGAL_STATUSES[EventType(event_type)]
    except ValueError:
        return False


def is_resolved(status: Union[EventStatus, str]) -> bool:
    """Check whether ``status`` closes the event (resolved or completed)."""
    try:
        return EventStatus(status) in RESOLVED_STATUSES
    except ValueError:
        return False


def validate_new_event(
    event_type: Union[EventType, str],
    status: Union[EventStatus, str],
    severity: Optional[Union[Severity, str]],
) -> tuple[EventType, EventStatus, Optional[Severity]]:
    """Validate the type, initial status and severity of a new event.

    Maintenance events carry no severity; any value given is dropped.

    Returns:
        The normalized (type, status, severity) triple

    Raises:
        InvalidEventTypeError: Unknown type
        InvalidStatusError: Status not legal for the type
        InvalidSeverityError: Incident without a known severity
    """
    parsed_type = parse_event_type(event_type)
    parsed_status = parse_status(status)

    if not is_valid_for_type(parsed_status, parsed_type):
        raise InvalidStatusError()

    if parsed_type == EventType.MAINTENANCE:
        return parsed_type, parsed_status, None

    if severity is None or severity == "":
        raise InvalidSeverityError()
    try:
        parsed_severity = Severity(severity)
    except ValueError:
        raise InvalidSeverityError(f"invalid severity: {severity}")

    return parsed_type, parsed_status, parsed_severity


def validate_transition(event_type: EventType, status: Union[EventStatus, str]) -> EventStatus:
    """Validate a status update against the event's fixed type.

    Raises:
        InvalidStatusError: Status unknown or not legal for the type
    """
    parsed_status = parse_status(status)
    if not is_valid_for_type(parsed_status, event_type):
        raise InvalidStatusError()
    return parsed_status


def next_resolved_at(
    current: Optional[datetime],
    status: EventStatus,
    now: datetime,
) -> Optional[datetime]:
    """Resolution timestamp after moving to ``status``.

    Set once, the first time the event enters a resolved state; never
    overwritten and never cleared afterwards.
    """
    if current is not None:
        return current
    if is_resolved(status):
        return now
    return None
