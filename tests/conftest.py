"""Pytest configuration and fixtures.

The service layer is exercised against in-memory repositories; the
SQLAlchemy repositories have their own tests under ``unit/db``.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from statuspage.api.auth.config import JWTConfig
from statuspage.api.auth.models import RefreshToken, User, UserRole
from statuspage.api.auth.password import PasswordService
from statuspage.api.auth.service import AuthService, EmailExistsError
from statuspage.api.auth.token import TokenService
from statuspage.api.events.errors import TemplateExistsError
from statuspage.api.events.lifecycle import is_resolved
from statuspage.api.events.models import (
    Event,
    EventFilters,
    EventTemplate,
    EventUpdate,
)
from statuspage.api.events.service import EventService
from statuspage.notifications.models import Notification, Subscriber, Subscription
from statuspage.notifications.subscriptions import SubscriptionService

TEST_SECRET = "test-secret-key-for-testing-0123456789"


# ==================== In-memory repositories ====================


class InMemoryIdentityRepository:
    """Users and refresh tokens kept in dicts."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.tokens: dict[str, RefreshToken] = {}
        self.commits = 0
        self._lock = asyncio.Lock()

    async def create_user(self, user: User) -> User:
        if any(u.email == user.email for u in self.users.values()):
            raise EmailExistsError()
        self.users[user.id] = user
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def update_user(self, user: User) -> Optional[User]:
        if user.id not in self.users:
            return None
        self.users[user.id] = user
        return user

    async def save_refresh_token(self, token: RefreshToken) -> RefreshToken:
        self.tokens[token.token] = token
        return token

    async def get_refresh_token(self, token: str) -> Optional[RefreshToken]:
        return self.tokens.get(token)

    async def consume_refresh_token(self, token: str) -> Optional[RefreshToken]:
        async with self._lock:
            return self.tokens.pop(token, None)

    async def delete_refresh_token(self, token: str) -> bool:
        return self.tokens.pop(token, None) is not None

    async def delete_user_refresh_tokens(self, user_id: str) -> int:
        doomed = [t for t, rt in self.tokens.items() if rt.user_id == user_id]
        for t in doomed:
            del self.tokens[t]
        return len(doomed)

    async def delete_expired_refresh_tokens(self, now: datetime) -> int:
        doomed = [t for t, rt in self.tokens.items() if rt.is_expired(now)]
        for t in doomed:
            del self.tokens[t]
        return len(doomed)

    async def commit(self) -> None:
        self.commits += 1


class InMemoryEventRepository:
    """Events, updates and templates kept in dicts."""

    def __init__(self) -> None:
        self.events: dict[str, Event] = {}
        self.updates: list[EventUpdate] = []
        self.templates: dict[str, EventTemplate] = {}
        self.event_services: dict[str, list[str]] = {}
        self.commits = 0

    async def create_event(self, event: Event) -> Event:
        self.events[event.id] = event
        return event

    async def get_event(self, event_id: str) -> Optional[Event]:
        event = self.events.get(event_id)
        if event is not None:
            event.service_ids = list(self.event_services.get(event_id, []))
        return event

    async def list_events(self, filters: EventFilters) -> list[Event]:
        events = sorted(self.events.values(), key=lambda e: e.created_at, reverse=True)
        if filters.type is not None:
            events = [e for e in events if e.type == filters.type]
        if filters.status is not None:
            events = [e for e in events if e.status == filters.status]
        return events[filters.offset : filters.offset + filters.limit]

    async def delete_event(self, event_id: str) -> bool:
        if self.events.pop(event_id, None) is None:
            return False
        self.updates = [u for u in self.updates if u.event_id != event_id]
        self.event_services.pop(event_id, None)
        return True

    async def associate_services(self, event_id: str, service_ids: list[str]) -> None:
        self.event_services.setdefault(event_id, []).extend(service_ids)

    async def get_event_services(self, event_id: str) -> list[str]:
        return list(self.event_services.get(event_id, []))

    async def append_update(self, event_update: EventUpdate, now: datetime) -> Optional[Event]:
        event = self.events.get(event_update.event_id)
        if event is None:
            return None
        event.status = event_update.status
        event.updated_at = now
        if is_resolved(event_update.status) and event.resolved_at is None:
            event.resolved_at = now
        self.updates.append(event_update)
        return event

    async def list_updates(self, event_id: str) -> list[EventUpdate]:
        updates = [u for u in self.updates if u.event_id == event_id]
        return sorted(updates, key=lambda u: u.created_at, reverse=True)

    async def create_template(self, template: EventTemplate) -> EventTemplate:
        if any(t.slug == template.slug for t in self.templates.values()):
            raise TemplateExistsError()
        self.templates[template.id] = template
        return template

    async def get_template(self, template_id: str) -> Optional[EventTemplate]:
        return self.templates.get(template_id)

    async def get_template_by_slug(self, slug: str) -> Optional[EventTemplate]:
        return next((t for t in self.templates.values() if t.slug == slug), None)

    async def list_templates(self) -> list[EventTemplate]:
        return sorted(self.templates.values(), key=lambda t: t.created_at, reverse=True)

    async def update_template(self, template: EventTemplate) -> Optional[EventTemplate]:
        if template.id not in self.templates:
            return None
        self.templates[template.id] = template
        return template

    async def delete_template(self, template_id: str) -> bool:
        if self.templates.pop(template_id, None) is None:
            return False
        for event in self.events.values():
            if event.template_id == template_id:
                event.template_id = None
        return True

    async def commit(self) -> None:
        self.commits += 1


class InMemorySubscriberRepository:
    """Subscribers keyed by the services they follow."""

    def __init__(self) -> None:
        self.subscriptions: list[tuple[Subscriber, list[str]]] = []

    def add(self, subscriber: Subscriber, service_ids: list[str]) -> None:
        self.subscriptions.append((subscriber, service_ids))

    async def get_subscribers_for_services(self, service_ids: list[str]) -> list[Subscriber]:
        wanted = set(service_ids)
        return [s for s, ids in self.subscriptions if wanted.intersection(ids)]


class InMemorySubscriptionRepository:
    """Subscriptions keyed by user id."""

    def __init__(self) -> None:
        self.subscriptions: dict[str, Subscription] = {}
        self.commits = 0

    async def get_user_subscription(self, user_id: str) -> Optional[Subscription]:
        subscription = self.subscriptions.get(user_id)
        if subscription is None:
            return None
        return replace(subscription, service_ids=list(subscription.service_ids))

    async def create_subscription(self, subscription: Subscription) -> Subscription:
        self.subscriptions.setdefault(subscription.user_id, subscription)
        return await self.get_user_subscription(subscription.user_id)

    async def set_subscription_services(
        self, subscription_id: str, service_ids: list[str]
    ) -> None:
        for subscription in self.subscriptions.values():
            if subscription.id == subscription_id:
                subscription.service_ids = list(service_ids)

    async def delete_subscription(self, subscription_id: str) -> bool:
        for user_id, subscription in list(self.subscriptions.items()):
            if subscription.id == subscription_id:
                del self.subscriptions[user_id]
                return True
        return False

    async def commit(self) -> None:
        self.commits += 1


class RecordingSender:
    """Sender that records what it was asked to deliver."""

    def __init__(self, channel_type: str, fail_for: Optional[set[str]] = None) -> None:
        self._channel_type = channel_type
        self.fail_for = fail_for or set()
        self.sent: list[Notification] = []

    @property
    def channel_type(self) -> str:
        return self._channel_type

    async def send(self, notification: Notification) -> None:
        if notification.to in self.fail_for:
            raise ConnectionError(f"cannot reach {notification.to}")
        self.sent.append(notification)


# ==================== Service fixtures ====================


@pytest.fixture
def jwt_config() -> JWTConfig:
    """JWT configuration with a fixed secret and cheap bcrypt."""
    return JWTConfig(secret_key=TEST_SECRET, bcrypt_rounds=4)


@pytest.fixture
def token_service(jwt_config: JWTConfig) -> TokenService:
    return TokenService(jwt_config)


@pytest.fixture
def password_service() -> PasswordService:
    return PasswordService(rounds=4)


@pytest.fixture
def identity_repo() -> InMemoryIdentityRepository:
    return InMemoryIdentityRepository()


@pytest.fixture
def auth_service(
    identity_repo: InMemoryIdentityRepository,
    token_service: TokenService,
    password_service: PasswordService,
) -> AuthService:
    return AuthService(
        users=identity_repo,
        tokens=identity_repo,
        token_service=token_service,
        password_service=password_service,
    )


@pytest.fixture
def event_repo() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def event_service(event_repo: InMemoryEventRepository) -> EventService:
    return EventService(event_repo)


@pytest.fixture
def subscription_repo() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def subscription_service(subscription_repo: InMemorySubscriptionRepository) -> SubscriptionService:
    return SubscriptionService(subscription_repo)


# ==================== API fixtures ====================


@pytest.fixture
def notifications(monkeypatch) -> list[tuple[list[str], str, str]]:
    """Capture background notification dispatches made by the routers."""
    sent: list[tuple[list[str], str, str]] = []

    async def fake_notify(service_ids: list[str], subject: str, body: str) -> int:
        sent.append((list(service_ids), subject, body))
        return len(service_ids)

    monkeypatch.setattr("statuspage.api.events.router.notify_subscribers", fake_notify)
    return sent


@pytest.fixture
def make_client(
    auth_service: AuthService,
    event_service: EventService,
    token_service: TokenService,
    subscription_service: SubscriptionService,
):
    """Build a test client wired to in-memory services."""
    from statuspage.api.auth.dependencies import get_auth_service, get_token_service
    from statuspage.api.events.router import get_event_service
    from statuspage.api.main import create_app
    from statuspage.api.subscriptions.router import get_subscription_service
    from statuspage.config import AppSettings

    def _make(**settings) -> TestClient:
        app = create_app(AppSettings(LOG_FORMAT="text", **settings))
        app.dependency_overrides[get_auth_service] = lambda: auth_service
        app.dependency_overrides[get_event_service] = lambda: event_service
        app.dependency_overrides[get_token_service] = lambda: token_service
        app.dependency_overrides[get_subscription_service] = lambda: subscription_service
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, notifications) -> TestClient:
    """Test client wired to in-memory services."""
    return make_client()


@pytest.fixture
def make_user(identity_repo: InMemoryIdentityRepository, password_service: PasswordService):
    """Create a user with a given role directly in storage."""

    def _make(email: str, role: UserRole = UserRole.USER, password: str = "password123") -> User:
        now = datetime.now(timezone.utc)
        user = User(
            id=f"user-{len(identity_repo.users) + 1}",
            email=email,
            password_hash=password_service.hash_password(password),
            role=role,
            created_at=now,
            updated_at=now,
        )
        identity_repo.users[user.id] = user
        return user

    return _make


@pytest.fixture
def auth_headers(token_service: TokenService, make_user):
    """Build Authorization headers for a fresh user of a given role."""

    def _headers(role: UserRole) -> dict[str, str]:
        user = make_user(f"{role.value}@example.com", role=role)
        token = token_service.create_access_token(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
