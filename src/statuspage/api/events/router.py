"""Event, status page and template routers.

- ``status_router``: public status page, no authentication
- ``router``: event management, mounted behind the operator role
- ``templates_router``: template management, mounted behind the admin role
"""

from typing import Annotated, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.api.auth.dependencies import get_current_principal, require_role
from statuspage.api.auth.models import Principal, UserRole
from statuspage.api.events.lifecycle import parse_event_type, parse_status
from statuspage.api.events.models import EventFilters
from statuspage.api.events.schemas import (
    EventCreate,
    EventResponse,
    EventUpdateCreate,
    EventUpdateResponse,
    StatusPageResponse,
    TemplateCreate,
    TemplatePreviewRequest,
    TemplatePreviewResponse,
    TemplateResponse,
)
from statuspage.api.events.service import CreateEventInput, CreateTemplateInput, EventService
from statuspage.api.schemas import DataResponse
from statuspage.db.database import get_db
from statuspage.db.repositories import EventRepository
from statuspage.notifications.service import (
    event_created_message,
    event_update_message,
    notify_subscribers,
)

STATUS_PAGE_LIMIT = 10
STATUS_HISTORY_LIMIT = 50

status_router = APIRouter(tags=["status"])
router = APIRouter(tags=["events"])
templates_router = APIRouter(tags=["templates"])


async def get_event_service(
    session: AsyncSession = Depends(get_db),
) -> EventService:
    """Dependency injection for EventService."""
    return EventService(EventRepository(session))


# ==================== Public ====================


@status_router.get("/status", response_model=DataResponse[StatusPageResponse])
async def get_status(
    service: EventService = Depends(get_event_service),
) -> DataResponse[StatusPageResponse]:
    """Latest events for the public status page."""
    events = await service.list_events(EventFilters(limit=STATUS_PAGE_LIMIT))
    return DataResponse(
        data=StatusPageResponse(events=[EventResponse.from_event(e) for e in events])
    )


@status_router.get("/status/history", response_model=DataResponse[StatusPageResponse])
async def get_status_history(
    service: EventService = Depends(get_event_service),
) -> DataResponse[StatusPageResponse]:
    """Longer event history for the public status page."""
    events = await service.list_events(EventFilters(limit=STATUS_HISTORY_LIMIT))
    return DataResponse(
        data=StatusPageResponse(events=[EventResponse.from_event(e) for e in events])
    )


# ==================== Events ====================


@router.post(
    "/events",
    response_model=DataResponse[EventResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    request: EventCreate,
    background_tasks: BackgroundTasks,
    service: EventService = Depends(get_event_service),
    principal: Principal = Depends(get_current_principal),
) -> DataResponse[EventResponse]:
    """Create an incident or maintenance event."""
    event = await service.create_event(
        CreateEventInput(
            title=request.title,
            type=request.type,
            status=request.status,
            severity=request.severity,
            description=request.description,
            started_at=request.started_at,
            scheduled_start_at=request.scheduled_start_at,
            scheduled_end_at=request.scheduled_end_at,
            notify_subscribers=request.notify_subscribers,
            template_id=request.template_id,
            service_ids=request.service_ids,
        ),
        created_by=principal.user_id,
    )

    if event.notify_subscribers and event.service_ids:
        subject, body = event_created_message(event)
        background_tasks.add_task(notify_subscribers, event.service_ids, subject, body)

    return DataResponse(data=EventResponse.from_event(event))


@router.get("/events", response_model=DataResponse[list[EventResponse]])
async def list_events(
    type: Optional[str] = None,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    service: EventService = Depends(get_event_service),
) -> DataResponse[list[EventResponse]]:
    """List events, newest first."""
    filters = EventFilters(
        type=parse_event_type(type) if type else None,
        status=parse_status(status_filter) if status_filter else None,
        limit=limit,
        offset=offset,
    )
    events = await service.list_events(filters)
    return DataResponse(data=[EventResponse.from_event(e) for e in events])


@router.get("/events/{event_id}", response_model=DataResponse[EventResponse])
async def get_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
) -> DataResponse[EventResponse]:
    """Get a single event."""
    event = await service.get_event(event_id)
    return DataResponse(data=EventResponse.from_event(event))


@router.delete(
    "/events/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)
async def delete_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
) -> Response:
    """Delete an event and its update history."""
    await service.delete_event(event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/events/{event_id}/updates",
    response_model=DataResponse[EventUpdateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_event_update(
    event_id: str,
    request: EventUpdateCreate,
    background_tasks: BackgroundTasks,
    service: EventService = Depends(get_event_service),
    principal: Principal = Depends(get_current_principal),
) -> DataResponse[EventUpdateResponse]:
    """Append a status update; the event moves to the update's status."""
    update = await service.add_update(
        event_id,
        status=request.status,
        message=request.message,
        notify_subscribers=request.notify_subscribers,
        created_by=principal.user_id,
    )

    if update.notify_subscribers:
        event = await service.get_event(event_id)
        if event.service_ids:
            subject, body = event_update_message(event, update)
            background_tasks.add_task(notify_subscribers, event.service_ids, subject, body)

    return DataResponse(data=EventUpdateResponse.from_update(update))


@router.get(
    "/events/{event_id}/updates",
    response_model=DataResponse[list[EventUpdateResponse]],
)
async def list_event_updates(
    event_id: str,
    service: EventService = Depends(get_event_service),
) -> DataResponse[list[EventUpdateResponse]]:
    """Update history of an event, newest first."""
    updates = await service.list_updates(event_id)
    return DataResponse(data=[EventUpdateResponse.from_update(u) for u in updates])


# ==================== Templates ====================


def _template_input(request: TemplateCreate) -> CreateTemplateInput:
    return CreateTemplateInput(
        slug=request.slug,
        type=request.type,
        title_template=request.title_template,
        body_template=request.body_template,
    )


@templates_router.post(
    "/templates",
    response_model=DataResponse[TemplateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_template(
    request: TemplateCreate,
    service: EventService = Depends(get_event_service),
) -> DataResponse[TemplateResponse]:
    """Create a template; both strings must parse."""
    template = await service.create_template(_template_input(request))
    return DataResponse(data=TemplateResponse.from_template(template))


@templates_router.get("/templates", response_model=DataResponse[list[TemplateResponse]])
async def list_templates(
    service: EventService = Depends(get_event_service),
) -> DataResponse[list[TemplateResponse]]:
    """List all templates."""
    templates = await service.list_templates()
    return DataResponse(data=[TemplateResponse.from_template(t) for t in templates])


@templates_router.get("/templates/{slug}", response_model=DataResponse[TemplateResponse])
async def get_template(
    slug: str,
    service: EventService = Depends(get_event_service),
) -> DataResponse[TemplateResponse]:
    """Get a template by slug."""
    template = await service.get_template_by_slug(slug)
    return DataResponse(data=TemplateResponse.from_template(template))


@templates_router.put("/templates/{template_id}", response_model=DataResponse[TemplateResponse])
async def update_template(
    template_id: str,
    request: TemplateCreate,
    service: EventService = Depends(get_event_service),
) -> DataResponse[TemplateResponse]:
    """Replace a template."""
    template = await service.update_template(template_id, _template_input(request))
    return DataResponse(data=TemplateResponse.from_template(template))


@templates_router.post(
    "/templates/{slug}/preview",
    response_model=DataResponse[TemplatePreviewResponse],
)
async def preview_template(
    slug: str,
    request: TemplatePreviewRequest,
    service: EventService = Depends(get_event_service),
) -> DataResponse[TemplatePreviewResponse]:
    """Render a template with sample values."""
    title, body = await service.preview_template(slug, request.to_data())
    return DataResponse(data=TemplatePreviewResponse(title=title, body=body))


@templates_router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    service: EventService = Depends(get_event_service),
) -> Response:
    """Delete a template."""
    await service.delete_template(template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
