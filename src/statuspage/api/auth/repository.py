"""Storage interfaces consumed by the authentication service."""

from datetime import datetime
from typing import Optional, Protocol

from statuspage.api.auth.models import RefreshToken, User


class UserRepositoryProtocol(Protocol):
    """Persistence for user accounts."""

    async def create_user(self, user: User) -> User: ...

    async def get_user_by_id(self, user_id: str) -> Optional[User]: ...

    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    async def update_user(self, user: User) -> Optional[User]: ...

    async def commit(self) -> None: ...


class RefreshTokenRepositoryProtocol(Protocol):
    """Persistence for refresh tokens."""

    async def save_refresh_token(self, token: RefreshToken) -> RefreshToken: ...

    async def get_refresh_token(self, token: str) -> Optional[RefreshToken]: ...

    async def consume_refresh_token(self, token: str) -> Optional[RefreshToken]:
        """Delete the token and return it, or None if it was not stored.

        Must be atomic: of two concurrent calls with the same token at most
        one receives the record.
        """
        ...

    async def delete_refresh_token(self, token: str) -> bool: ...

    async def delete_user_refresh_tokens(self, user_id: str) -> int: ...

    async def delete_expired_refresh_tokens(self, now: datetime) -> int: ...

    async def commit(self) -> None: ...
