"""Pydantic schemas for events and templates."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from statuspage.api.events.models import Event, EventTemplate, EventUpdate, TemplateData


class EventCreate(BaseModel):
    """Schema for creating an event.

    ``type``, ``status`` and ``severity`` are checked by the event service so
    that each gets its own error kind.
    """

    title: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., description="incident or maintenance")
    status: str = Field(..., description="Initial status, legal for the type")
    severity: Optional[str] = Field(None, description="minor, major or critical; incidents only")
    description: str = Field(default="")
    started_at: Optional[datetime] = None
    scheduled_start_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    notify_subscribers: bool = False
    template_id: Optional[str] = None
    service_ids: list[str] = Field(default_factory=list)


class EventUpdateCreate(BaseModel):
    """Schema for appending a status update."""

    status: str
    message: str = Field(..., min_length=1)
    notify_subscribers: bool = False


class EventResponse(BaseModel):
    """Schema for event response."""

    id: str
    title: str
    type: str
    status: str
    severity: Optional[str]
    description: str
    started_at: Optional[datetime]
    resolved_at: Optional[datetime]
    scheduled_start_at: Optional[datetime]
    scheduled_end_at: Optional[datetime]
    notify_subscribers: bool
    template_id: Optional[str]
    created_by: str
    service_ids: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            type=event.type.value,
            status=event.status.value,
            severity=event.severity.value if event.severity else None,
            description=event.description,
            started_at=event.started_at,
            resolved_at=event.resolved_at,
            scheduled_start_at=event.scheduled_start_at,
            scheduled_end_at=event.scheduled_end_at,
            notify_subscribers=event.notify_subscribers,
            template_id=event.template_id,
            created_by=event.created_by,
            service_ids=list(event.service_ids),
            created_at=event.created_at,
            updated_at=event.updated_at,
        )


class StatusPageResponse(BaseModel):
    """Public status page: ``{"events": [...]}``."""

    events: list[EventResponse]


class EventUpdateResponse(BaseModel):
    """Schema for event update response."""

    id: str
    event_id: str
    status: str
    message: str
    notify_subscribers: bool
    created_by: str
    created_at: datetime

    @classmethod
    def from_update(cls, update: EventUpdate) -> "EventUpdateResponse":
        return cls(
            id=update.id,
            event_id=update.event_id,
            status=update.status.value,
            message=update.message,
            notify_subscribers=update.notify_subscribers,
            created_by=update.created_by,
            created_at=update.created_at,
        )


class TemplateCreate(BaseModel):
    """Schema for creating or replacing a template."""

    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    type: str
    title_template: str = Field(..., min_length=1)
    body_template: str = Field(..., min_length=1)


class TemplateResponse(BaseModel):
    """Schema for template response."""

    id: str
    slug: str
    type: str
    title_template: str
    body_template: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_template(cls, template: EventTemplate) -> "TemplateResponse":
        return cls(
            id=template.id,
            slug=template.slug,
            type=template.type.value,
            title_template=template.title_template,
            body_template=template.body_template,
            created_at=template.created_at,
            updated_at=template.updated_at,
        )


class TemplatePreviewRequest(BaseModel):
    """Values substituted into a template preview."""

    service_name: str = ""
    service_group_name: str = ""
    started_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    def to_data(self) -> TemplateData:
        return TemplateData(
            service_name=self.service_name,
            service_group_name=self.service_group_name,
            started_at=self.started_at,
            resolved_at=self.resolved_at,
            scheduled_start=self.scheduled_start,
            scheduled_end=self.scheduled_end,
        )


class TemplatePreviewResponse(BaseModel):
    """Rendered template."""

    title: str
    body: str
