"""Repository layer for database operations."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.api.auth.models import RefreshToken, User, UserRole
from statuspage.api.auth.service import EmailExistsError
from statuspage.api.events.errors import TemplateExistsError
from statuspage.api.events.lifecycle import is_resolved
from statuspage.api.events.models import (
    Event,
    EventFilters,
    EventStatus,
    EventTemplate,
    EventType,
    EventUpdate,
    Severity,
)
from statuspage.db.models import (
    EventORM,
    EventTemplateORM,
    EventUpdateORM,
    NotificationChannelORM,
    RefreshTokenORM,
    SubscriptionORM,
    UserORM,
    event_services,
    subscription_services,
)
from statuspage.notifications.models import NotificationChannel, Subscriber, Subscription


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SessionRepository:
    """Base for repositories bound to one request-scoped session."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def commit(self) -> None:
        """Commit the session's current transaction."""
        await self.session.commit()


class IdentityRepository(SessionRepository):
    """Repository for users and refresh tokens."""

    # ==================== Users ====================

    async def create_user(self, user: User) -> User:
        """Insert a new user."""
        orm_user = UserORM(
            id=user.id,
            email=user.email,
            password_hash=user.password_hash,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self.session.add(orm_user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            raise EmailExistsError() from e
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(select(UserORM).where(UserORM.id == user_id))
        orm_user = result.scalar_one_or_none()
        return self._orm_to_user(orm_user) if orm_user else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        result = await self.session.execute(select(UserORM).where(UserORM.email == email))
        orm_user = result.scalar_one_or_none()
        return self._orm_to_user(orm_user) if orm_user else None

    async def update_user(self, user: User) -> Optional[User]:
        """Update profile fields and role of an existing user."""
        result = await self.session.execute(
            update(UserORM)
            .where(UserORM.id == user.id)
            .values(
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                role=user.role.value,
                updated_at=datetime.now(timezone.utc),
            )
        )
        await self.session.flush()
        if result.rowcount == 0:
            return None
        return await self.get_user_by_id(user.id)

    # ==================== Refresh Tokens ====================

    async def save_refresh_token(self, token: RefreshToken) -> RefreshToken:
        """Store a refresh token."""
        token.id = token.id or str(uuid.uuid4())
        self.session.add(
            RefreshTokenORM(
                id=token.id,
                user_id=token.user_id,
                token=token.token,
                expires_at=token.expires_at,
                created_at=token.created_at,
            )
        )
        await self.session.flush()
        return token

    async def get_refresh_token(self, token: str) -> Optional[RefreshToken]:
        """Get a stored refresh token, expired or not."""
        result = await self.session.execute(
            select(RefreshTokenORM).where(RefreshTokenORM.token == token)
        )
        orm_token = result.scalar_one_or_none()
        if orm_token is None:
            return None
        return RefreshToken(
            id=orm_token.id,
            user_id=orm_token.user_id,
            token=orm_token.token,
            expires_at=_as_utc(orm_token.expires_at),
            created_at=_as_utc(orm_token.created_at),
        )

    async def consume_refresh_token(self, token: str) -> Optional[RefreshToken]:
        """Delete a refresh token and return what was stored.

        A single ``DELETE ... RETURNING`` statement: concurrent consumers of
        the same token serialize on the row and only one gets it back.
        """
        result = await self.session.execute(
            delete(RefreshTokenORM)
            .where(RefreshTokenORM.token == token)
            .returning(
                RefreshTokenORM.id,
                RefreshTokenORM.user_id,
                RefreshTokenORM.token,
                RefreshTokenORM.expires_at,
                RefreshTokenORM.created_at,
            )
        )
        row = result.one_or_none()
        if row is None:
            return None
        return RefreshToken(
            id=row.id,
            user_id=row.user_id,
            token=row.token,
            expires_at=_as_utc(row.expires_at),
            created_at=_as_utc(row.created_at),
        )

    async def delete_refresh_token(self, token: str) -> bool:
        """Delete a refresh token; returns whether it existed."""
        result = await self.session.execute(
            delete(RefreshTokenORM).where(RefreshTokenORM.token == token)
        )
        return result.rowcount > 0

    async def delete_user_refresh_tokens(self, user_id: str) -> int:
        """Delete every refresh token of a user."""
        result = await self.session.execute(
            delete(RefreshTokenORM).where(RefreshTokenORM.user_id == user_id)
        )
        return result.rowcount

    async def delete_expired_refresh_tokens(self, now: datetime) -> int:
        """Purge refresh tokens past their expiry."""
        result = await self.session.execute(
            delete(RefreshTokenORM).where(RefreshTokenORM.expires_at <= now)
        )
        return result.rowcount

    # ==================== Helper Methods ====================

    def _orm_to_user(self, orm: UserORM) -> User:
        return User(
            id=orm.id,
            email=orm.email,
            password_hash=orm.password_hash,
            first_name=orm.first_name or "",
            last_name=orm.last_name or "",
            role=UserRole(orm.role),
            created_at=_as_utc(orm.created_at),
            updated_at=_as_utc(orm.updated_at),
        )


class EventRepository(SessionRepository):
    """Repository for events, event updates and templates."""

    # ==================== Events ====================

    async def create_event(self, event: Event) -> Event:
        """Insert a new event (service associations are stored separately)."""
        self.session.add(
            EventORM(
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
                created_at=event.created_at,
                updated_at=event.updated_at,
            )
        )
        await self.session.flush()
        return event

    async def get_event(self, event_id: str) -> Optional[Event]:
        """Get event by ID with its service ids."""
        result = await self.session.execute(
            select(EventORM)
            .where(EventORM.id == event_id)
            .execution_options(populate_existing=True)
        )
        orm_event = result.scalar_one_or_none()
        if orm_event is None:
            return None
        service_ids = await self.get_event_services(event_id)
        return self._orm_to_event(orm_event, service_ids)

    async def list_events(self, filters: EventFilters) -> list[Event]:
        """List events, newest first, with optional type/status filters."""
        query = select(EventORM)
        if filters.type is not None:
            query = query.where(EventORM.type == filters.type.value)
        if filters.status is not None:
            query = query.where(EventORM.status == filters.status.value)

        query = query.order_by(EventORM.created_at.desc(), EventORM.id)
        if filters.offset:
            query = query.offset(filters.offset)
        if filters.limit:
            query = query.limit(filters.limit)

        result = await self.session.execute(query.execution_options(populate_existing=True))
        orm_events = result.scalars().all()
        if not orm_events:
            return []

        services: dict[str, list[str]] = {e.id: [] for e in orm_events}
        rows = await self.session.execute(
            select(event_services.c.event_id, event_services.c.service_id)
            .where(event_services.c.event_id.in_(list(services)))
            .order_by(event_services.c.service_id)
        )
        for event_id, service_id in rows.all():
            services[event_id].append(service_id)

        return [self._orm_to_event(e, services[e.id]) for e in orm_events]

    async def delete_event(self, event_id: str) -> bool:
        """Delete an event; updates and associations go with it."""
        await self.session.execute(
            delete(EventUpdateORM).where(EventUpdateORM.event_id == event_id)
        )
        await self.session.execute(
            delete(event_services).where(event_services.c.event_id == event_id)
        )
        result = await self.session.execute(delete(EventORM).where(EventORM.id == event_id))
        return result.rowcount > 0

    async def associate_services(self, event_id: str, service_ids: list[str]) -> None:
        """Link an event to the given services."""
        if not service_ids:
            return
        await self.session.execute(
            insert(event_services),
            [{"event_id": event_id, "service_id": sid} for sid in service_ids],
        )

    async def get_event_services(self, event_id: str) -> list[str]:
        """Service ids linked to an event."""
        result = await self.session.execute(
            select(event_services.c.service_id)
            .where(event_services.c.event_id == event_id)
            .order_by(event_services.c.service_id)
        )
        return list(result.scalars().all())

    # ==================== Updates ====================

    async def append_update(self, event_update: EventUpdate, now: datetime) -> Optional[Event]:
        """Move the event to the update's status and record the update.

        The event row is written first, which locks it on PostgreSQL, so
        concurrent updates of one event serialize. ``resolved_at`` uses
        ``COALESCE`` so the first resolution wins under concurrency too.
        """
        values: dict = {"status": event_update.status.value, "updated_at": now}
        if is_resolved(event_update.status):
            values["resolved_at"] = func.coalesce(EventORM.resolved_at, now)

        result = await self.session.execute(
            update(EventORM)
            .where(EventORM.id == event_update.event_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None

        self.session.add(
            EventUpdateORM(
                id=event_update.id,
                event_id=event_update.event_id,
                status=event_update.status.value,
                message=event_update.message,
                notify_subscribers=event_update.notify_subscribers,
                created_by=event_update.created_by,
                created_at=event_update.created_at,
            )
        )
        await self.session.flush()
        return await self.get_event(event_update.event_id)

    async def list_updates(self, event_id: str) -> list[EventUpdate]:
        """Update history of an event, newest first."""
        result = await self.session.execute(
            select(EventUpdateORM)
            .where(EventUpdateORM.event_id == event_id)
            .order_by(EventUpdateORM.created_at.desc(), EventUpdateORM.id)
        )
        return [
            EventUpdate(
                id=u.id,
                event_id=u.event_id,
                status=EventStatus(u.status),
                message=u.message,
                notify_subscribers=u.notify_subscribers,
                created_by=u.created_by,
                created_at=_as_utc(u.created_at),
            )
            for u in result.scalars().all()
        ]

    # ==================== Templates ====================

    async def create_template(self, template: EventTemplate) -> EventTemplate:
        """Insert a new template."""
        self.session.add(
            EventTemplateORM(
                id=template.id,
                slug=template.slug,
                type=template.type.value,
                title_template=template.title_template,
                body_template=template.body_template,
                created_at=template.created_at,
                updated_at=template.updated_at,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise TemplateExistsError() from e
        return template

    async def get_template(self, template_id: str) -> Optional[EventTemplate]:
        """Get template by ID."""
        result = await self.session.execute(
            select(EventTemplateORM)
            .where(EventTemplateORM.id == template_id)
            .execution_options(populate_existing=True)
        )
        orm = result.scalar_one_or_none()
        return self._orm_to_template(orm) if orm else None

    async def get_template_by_slug(self, slug: str) -> Optional[EventTemplate]:
        """Get template by slug."""
        result = await self.session.execute(
            select(EventTemplateORM)
            .where(EventTemplateORM.slug == slug)
            .execution_options(populate_existing=True)
        )
        orm = result.scalar_one_or_none()
        return self._orm_to_template(orm) if orm else None

    async def list_templates(self) -> list[EventTemplate]:
        """List templates, newest first."""
        result = await self.session.execute(
            select(EventTemplateORM).order_by(EventTemplateORM.created_at.desc())
        )
        return [self._orm_to_template(t) for t in result.scalars().all()]

    async def update_template(self, template: EventTemplate) -> Optional[EventTemplate]:
        """Replace the slug, type and template strings of a template."""
        try:
            result = await self.session.execute(
                update(EventTemplateORM)
                .where(EventTemplateORM.id == template.id)
                .values(
                    slug=template.slug,
                    type=template.type.value,
                    title_template=template.title_template,
                    body_template=template.body_template,
                    updated_at=template.updated_at,
                )
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            raise TemplateExistsError() from e
        if result.rowcount == 0:
            return None
        return await self.get_template(template.id)

    async def delete_template(self, template_id: str) -> bool:
        """Delete a template; events keep running without it."""
        await self.session.execute(
            update(EventORM)
            .where(EventORM.template_id == template_id)
            .values(template_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(EventTemplateORM).where(EventTemplateORM.id == template_id)
        )
        return result.rowcount > 0

    # ==================== Helper Methods ====================

    def _orm_to_event(self, orm: EventORM, service_ids: list[str]) -> Event:
        return Event(
            id=orm.id,
            title=orm.title,
            type=EventType(orm.type),
            status=EventStatus(orm.status),
            severity=Severity(orm.severity) if orm.severity else None,
            description=orm.description,
            started_at=_as_utc(orm.started_at),
            resolved_at=_as_utc(orm.resolved_at),
            scheduled_start_at=_as_utc(orm.scheduled_start_at),
            scheduled_end_at=_as_utc(orm.scheduled_end_at),
            notify_subscribers=orm.notify_subscribers,
            template_id=orm.template_id,
            created_by=orm.created_by,
            service_ids=service_ids,
            created_at=_as_utc(orm.created_at),
            updated_at=_as_utc(orm.updated_at),
        )

    def _orm_to_template(self, orm: EventTemplateORM) -> EventTemplate:
        return EventTemplate(
            id=orm.id,
            slug=orm.slug,
            type=EventType(orm.type),
            title_template=orm.title_template,
            body_template=orm.body_template,
            created_at=_as_utc(orm.created_at),
            updated_at=_as_utc(orm.updated_at),
        )


class SubscriberRepository(SessionRepository):
    """Subscriptions, delivery channels and the subscriber lookup for fan-out."""

    # ==================== Subscriptions ====================

    async def get_user_subscription(self, user_id: str) -> Optional[Subscription]:
        """Get a user's subscription with its service ids."""
        result = await self.session.execute(
            select(SubscriptionORM).where(SubscriptionORM.user_id == user_id)
        )
        orm_sub = result.scalar_one_or_none()
        if orm_sub is None:
            return None

        services_result = await self.session.execute(
            select(subscription_services.c.service_id)
            .where(subscription_services.c.subscription_id == orm_sub.id)
            .order_by(subscription_services.c.service_id)
        )
        return Subscription(
            id=orm_sub.id,
            user_id=orm_sub.user_id,
            service_ids=list(services_result.scalars().all()),
            created_at=_as_utc(orm_sub.created_at),
        )

    async def create_subscription(self, subscription: Subscription) -> Subscription:
        """Insert an empty subscription, or return the one created concurrently."""
        try:
            async with self.session.begin_nested():
                self.session.add(
                    SubscriptionORM(
                        id=subscription.id,
                        user_id=subscription.user_id,
                        created_at=subscription.created_at or datetime.now(timezone.utc),
                    )
                )
        except IntegrityError:
            existing = await self.get_user_subscription(subscription.user_id)
            if existing is None:
                raise
            return existing
        return subscription

    async def set_subscription_services(
        self, subscription_id: str, service_ids: list[str]
    ) -> None:
        """Replace the service set of a subscription."""
        await self.session.execute(
            delete(subscription_services).where(
                subscription_services.c.subscription_id == subscription_id
            )
        )
        if service_ids:
            await self.session.execute(
                insert(subscription_services),
                [
                    {"subscription_id": subscription_id, "service_id": sid}
                    for sid in service_ids
                ],
            )

    async def delete_subscription(self, subscription_id: str) -> bool:
        """Delete a subscription and its service links."""
        await self.session.execute(
            delete(subscription_services).where(
                subscription_services.c.subscription_id == subscription_id
            )
        )
        result = await self.session.execute(
            delete(SubscriptionORM).where(SubscriptionORM.id == subscription_id)
        )
        return result.rowcount > 0

    # ==================== Channels ====================

    async def create_channel(self, channel: NotificationChannel) -> NotificationChannel:
        """Insert a delivery channel."""
        self.session.add(
            NotificationChannelORM(
                id=channel.id,
                user_id=channel.user_id,
                type=channel.type,
                target=channel.target,
                is_enabled=channel.is_enabled,
                is_verified=channel.is_verified,
            )
        )
        await self.session.flush()
        return channel

    async def list_user_channels(self, user_id: str) -> list[NotificationChannel]:
        """Channels owned by a user, oldest first."""
        result = await self.session.execute(
            select(NotificationChannelORM)
            .where(NotificationChannelORM.user_id == user_id)
            .order_by(NotificationChannelORM.created_at)
        )
        return [self._orm_to_channel(ch) for ch in result.scalars().all()]

    # ==================== Fan-out ====================

    async def get_subscribers_for_services(self, service_ids: list[str]) -> list[Subscriber]:
        """Users subscribed to any of ``service_ids`` with all their channels."""
        if not service_ids:
            return []

        user_ids_result = await self.session.execute(
            select(SubscriptionORM.user_id)
            .join(
                subscription_services,
                subscription_services.c.subscription_id == SubscriptionORM.id,
            )
            .where(subscription_services.c.service_id.in_(service_ids))
            .distinct()
        )
        user_ids = sorted(user_ids_result.scalars().all())
        if not user_ids:
            return []

        channels_result = await self.session.execute(
            select(NotificationChannelORM)
            .where(NotificationChannelORM.user_id.in_(user_ids))
            .order_by(NotificationChannelORM.created_at)
        )
        subscribers = {uid: Subscriber(user_id=uid) for uid in user_ids}
        for ch in channels_result.scalars().all():
            subscribers[ch.user_id].channels.append(self._orm_to_channel(ch))
        return list(subscribers.values())

    def _orm_to_channel(self, orm: NotificationChannelORM) -> NotificationChannel:
        return NotificationChannel(
            id=orm.id,
            user_id=orm.user_id,
            type=orm.type,
            target=orm.target,
            is_enabled=orm.is_enabled,
            is_verified=orm.is_verified,
        )
