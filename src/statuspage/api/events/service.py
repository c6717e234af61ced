"""Event service: event lifecycle, update history and templates."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from statuspage.api.events.errors import (
    EventNotFoundError,
    TemplateExistsError,
    TemplateNotFoundError,
)
from statuspage.api.events.lifecycle import (
    next_resolved_at,
    parse_event_type,
    validate_new_event,
    validate_transition,
)
from statuspage.api.events.models import (
    Event,
    EventFilters,
    EventTemplate,
    EventUpdate,
    TemplateData,
)
from statuspage.api.events.repository import EventRepositoryProtocol
from statuspage.api.events.templates import TemplateRenderer
from statuspage.core.errors import storage_errors

logger = logging.getLogger(__name__)


@dataclass
class CreateEventInput:
    """Data for creating an event."""

    title: str
    type: str
    status: str
    description: str
    severity: Optional[str] = None
    started_at: Optional[datetime] = None
    scheduled_start_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    notify_subscribers: bool = False
    template_id: Optional[str] = None
    service_ids: list[str] = field(default_factory=list)


@dataclass
class CreateTemplateInput:
    """Data for creating or replacing a template."""

    slug: str
    type: str
    title_template: str
    body_template: str


class EventService:
    """Service for events and event templates.

    All validation happens before the first write, so a rejected request
    never leaves partial state behind.
    """

    def __init__(
        self,
        repo: EventRepositoryProtocol,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        """Initialize event service.

        Args:
            repo: Event storage
            renderer: Template renderer
        """
        self._repo = repo
        self._renderer = renderer or TemplateRenderer()

    # ==================== Events ====================

    async def create_event(self, data: CreateEventInput, created_by: str) -> Event:
        """Create a new event.

        Raises:
            InvalidEventTypeError: Unknown type
            InvalidStatusError: Initial status not legal for the type
            InvalidSeverityError: Incident without a valid severity
            TemplateNotFoundError: ``template_id`` does not exist
        """
        event_type, status, severity = validate_new_event(
            data.type, data.status, data.severity
        )

        if data.template_id is not None:
            async with storage_errors("get template"):
                template = await self._repo.get_template(data.template_id)
            if template is None:
                raise TemplateNotFoundError()

        now = datetime.now(timezone.utc)
        service_ids = list(dict.fromkeys(data.service_ids))
        event = Event(
            id=str(uuid.uuid4()),
            title=data.title,
            type=event_type,
            status=status,
            severity=severity,
            description=data.description,
            started_at=data.started_at,
            resolved_at=next_resolved_at(None, status, now),
            scheduled_start_at=data.scheduled_start_at,
            scheduled_end_at=data.scheduled_end_at,
            notify_subscribers=data.notify_subscribers,
            template_id=data.template_id,
            created_by=created_by,
            service_ids=service_ids,
            created_at=now,
            updated_at=now,
        )

        async with storage_errors("create event"):
            created = await self._repo.create_event(event)
            if service_ids:
                await self._repo.associate_services(created.id, service_ids)
            await self._repo.commit()

        created.service_ids = service_ids
        logger.info(
            "Event created",
            extra={"event_id": created.id, "event_type": event_type.value, "status": status.value},
        )
        return created

    async def get_event(self, event_id: str) -> Event:
        """Get an event by id.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        async with storage_errors("get event"):
            event = await self._repo.get_event(event_id)
        if event is None:
            raise EventNotFoundError()
        return event

    async def list_events(self, filters: Optional[EventFilters] = None) -> list[Event]:
        """List events, newest first."""
        async with storage_errors("list events"):
            return await self._repo.list_events(filters or EventFilters())

    async def add_update(
        self,
        event_id: str,
        status: str,
        message: str,
        notify_subscribers: bool,
        created_by: str,
    ) -> EventUpdate:
        """Append a status update and move the event to that status.

        The status must be legal for the event's type. Entering a resolved
        state stamps ``resolved_at`` the first time only; moving a resolved
        event back to an earlier status keeps the original stamp.

        Raises:
            EventNotFoundError: If the event does not exist
            InvalidStatusError: Status not legal for the event type
        """
        event = await self.get_event(event_id)
        new_status = validate_transition(event.type, status)

        update = EventUpdate(
            id=str(uuid.uuid4()),
            event_id=event.id,
            status=new_status,
            message=message,
            notify_subscribers=notify_subscribers,
            created_by=created_by,
            created_at=datetime.now(timezone.utc),
        )

        async with storage_errors("append event update"):
            updated = await self._repo.append_update(update, now=update.created_at)
            if updated is None:
                raise EventNotFoundError()
            await self._repo.commit()

        logger.info(
            "Event status updated",
            extra={
                "event_id": event.id,
                "from_status": event.status.value,
                "status": new_status.value,
            },
        )
        return update

    async def list_updates(self, event_id: str) -> list[EventUpdate]:
        """List the update history of an event, newest first.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        await self.get_event(event_id)
        async with storage_errors("list event updates"):
            return await self._repo.list_updates(event_id)

    async def delete_event(self, event_id: str) -> None:
        """Delete an event together with its history.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        async with storage_errors("delete event"):
            deleted = await self._repo.delete_event(event_id)
            if deleted:
                await self._repo.commit()
        if not deleted:
            raise EventNotFoundError()
        logger.info("Event deleted", extra={"event_id": event_id})

    # ==================== Templates ====================

    def _validate_template(self, data: CreateTemplateInput) -> None:
        parse_event_type(data.type)
        self._renderer.validate(data.title_template)
        self._renderer.validate(data.body_template)

    async def create_template(self, data: CreateTemplateInput) -> EventTemplate:
        """Create a template after validating both template strings.

        Raises:
            InvalidEventTypeError: Unknown type
            TemplateSyntaxError: A template string does not parse
            TemplateExistsError: Slug already taken
        """
        self._validate_template(data)

        async with storage_errors("get template by slug"):
            existing = await self._repo.get_template_by_slug(data.slug)
        if existing is not None:
            raise TemplateExistsError()

        now = datetime.now(timezone.utc)
        template = EventTemplate(
            id=str(uuid.uuid4()),
            slug=data.slug,
            type=parse_event_type(data.type),
            title_template=data.title_template,
            body_template=data.body_template,
            created_at=now,
            updated_at=now,
        )

        async with storage_errors("create template"):
            created = await self._repo.create_template(template)
            await self._repo.commit()
        return created

    async def get_template(self, template_id: str) -> EventTemplate:
        """Get a template by id."""
        async with storage_errors("get template"):
            template = await self._repo.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError()
        return template

    async def get_template_by_slug(self, slug: str) -> EventTemplate:
        """Get a template by slug."""
        async with storage_errors("get template by slug"):
            template = await self._repo.get_template_by_slug(slug)
        if template is None:
            raise TemplateNotFoundError()
        return template

    async def list_templates(self) -> list[EventTemplate]:
        """List all templates, newest first."""
        async with storage_errors("list templates"):
            return await self._repo.list_templates()

    async def update_template(self, template_id: str, data: CreateTemplateInput) -> EventTemplate:
        """Replace a template; the new strings are validated before saving.

        Raises:
            TemplateNotFoundError: No such template
            TemplateExistsError: The new slug belongs to another template
        """
        self._validate_template(data)
        current = await self.get_template(template_id)

        if data.slug != current.slug:
            async with storage_errors("get template by slug"):
                clash = await self._repo.get_template_by_slug(data.slug)
            if clash is not None:
                raise TemplateExistsError()

        current.slug = data.slug
        current.type = parse_event_type(data.type)
        current.title_template = data.title_template
        current.body_template = data.body_template
        current.updated_at = datetime.now(timezone.utc)

        async with storage_errors("update template"):
            updated = await self._repo.update_template(current)
            if updated is None:
                raise TemplateNotFoundError()
            await self._repo.commit()
        return updated

    async def delete_template(self, template_id: str) -> None:
        """Delete a template by id."""
        async with storage_errors("delete template"):
            deleted = await self._repo.delete_template(template_id)
            if deleted:
                await self._repo.commit()
        if not deleted:
            raise TemplateNotFoundError()

    async def preview_template(self, slug: str, data: TemplateData) -> tuple[str, str]:
        """Render the title and body of the template ``slug``.

        Raises:
            TemplateNotFoundError: No such template
            TemplateRenderError: Rendering failed
        """
        template = await self.get_template_by_slug(slug)
        title = self._renderer.render(template.title_template, data)
        body = self._renderer.render(template.body_template, data)
        return title, body
