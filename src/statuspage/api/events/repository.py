"""Storage interface consumed by the event service."""

from datetime import datetime
from typing import Optional, Protocol

from statuspage.api.events.models import (
    Event,
    EventFilters,
    EventTemplate,
    EventUpdate,
)


class EventRepositoryProtocol(Protocol):
    """Persistence for events, their update history and templates."""

    async def create_event(self, event: Event) -> Event: ...

    async def get_event(self, event_id: str) -> Optional[Event]: ...

    async def list_events(self, filters: EventFilters) -> list[Event]: ...

    async def delete_event(self, event_id: str) -> bool: ...

    async def associate_services(self, event_id: str, service_ids: list[str]) -> None: ...

    async def get_event_services(self, event_id: str) -> list[str]: ...

    async def append_update(self, event_update: EventUpdate, now: datetime) -> Optional[Event]:
        """Store ``event_update`` and move the event to its status.

        Both writes belong to one transaction. ``resolved_at`` is set to
        ``now`` only if the new status is resolved and it is still empty.
        Returns the updated event, or None if the event no longer exists.
        """
        ...

    async def list_updates(self, event_id: str) -> list[EventUpdate]: ...

    async def create_template(self, template: EventTemplate) -> EventTemplate: ...

    async def get_template(self, template_id: str) -> Optional[EventTemplate]: ...

    async def get_template_by_slug(self, slug: str) -> Optional[EventTemplate]: ...

    async def list_templates(self) -> list[EventTemplate]: ...

    async def update_template(self, template: EventTemplate) -> Optional[EventTemplate]: ...

    async def delete_template(self, template_id: str) -> bool: ...

    async def commit(self) -> None: ...
