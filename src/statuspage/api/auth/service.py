"""Authentication service: registration, login and token lifecycle."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from statuspage.api.auth.models import RefreshToken, TokenPair, User, UserRole
from statuspage.api.auth.password import PasswordService
from statuspage.api.auth.repository import (
    RefreshTokenRepositoryProtocol,
    UserRepositoryProtocol,
)
from statuspage.api.auth.token import InvalidTokenError, TokenService
from statuspage.core.errors import StatusPageError, storage_errors

logger = logging.getLogger(__name__)


class EmailExistsError(StatusPageError):
    """Raised when registering an email that is already taken."""

    kind = "email_exists"
    status_code = 409
    default_message = "email already exists"


class InvalidCredentialsError(StatusPageError):
    """Raised on unknown email or wrong password."""

    kind = "invalid_credentials"
    status_code = 401
    default_message = "invalid credentials"


class UserNotFoundError(StatusPageError):
    """Raised when a user id does not resolve to an account."""

    kind = "user_not_found"
    status_code = 404
    default_message = "user not found"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Turns credentials into token pairs and manages refresh tokens.

    Access tokens are validated purely by signature and expiry. Refresh
    tokens are opaque, stored, and single-use.
    """

    def __init__(
        self,
        users: UserRepositoryProtocol,
        tokens: RefreshTokenRepositoryProtocol,
        token_service: TokenService,
        password_service: PasswordService | None = None,
    ) -> None:
        """Initialize auth service.

        Args:
            users: User storage
            tokens: Refresh token storage
            token_service: Access token signer/verifier
            password_service: Password hasher, defaults to bcrypt with the
                rounds from the token service config
        """
        self._users = users
        self._tokens = tokens
        self._token_service = token_service
        self._passwords = password_service or PasswordService(
            rounds=token_service.config.bcrypt_rounds
        )

    async def register(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create a new account.

        Self-service registration always produces a ``user``; other roles are
        only passed by administrative tooling.

        Raises:
            EmailExistsError: If the email is already registered
        """
        email = _normalize_email(email)

        async with storage_errors("check email"):
            existing = await self._users.get_user_by_email(email)
        if existing is not None:
            raise EmailExistsError()

        password_hash = await asyncio.to_thread(self._passwords.hash_password, password)

        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )

        async with storage_errors("create user"):
            created = await self._users.create_user(user)
            await self._users.commit()

        logger.info("User registered", extra={"user_id": created.id, "role": created.role.value})
        return created

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Authenticate with email and password.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password
                does not match
        """
        email = _normalize_email(email)

        async with storage_errors("get user by email"):
            user = await self._users.get_user_by_email(email)

        if user is None:
            await asyncio.to_thread(self._passwords.burn_verification, password)
            logger.info("Login failed: unknown account")
            raise InvalidCredentialsError()

        matches = await asyncio.to_thread(
            self._passwords.verify_password, password, user.password_hash
        )
        if not matches:
            logger.info("Login failed: wrong password", extra={"user_id": user.id})
            raise InvalidCredentialsError()

        tokens = await self.generate_tokens(user)
        return user, tokens

    async def generate_tokens(self, user: User) -> TokenPair:
        """Issue a new access token and a stored refresh token for ``user``."""
        now = datetime.now(timezone.utc)
        access_token = self._token_service.create_access_token(user.id, user.role, now=now)

        refresh = RefreshToken(
            user_id=user.id,
            token=self._token_service.create_refresh_token(),
            expires_at=now + self._token_service.refresh_token_lifetime,
            created_at=now,
        )
        async with storage_errors("save refresh token"):
            await self._tokens.save_refresh_token(refresh)
            await self._tokens.commit()

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh.token,
            expires_in=int(self._token_service.access_token_lifetime.total_seconds()),
        )

    def validate_access_token(self, token: str) -> tuple[str, UserRole]:
        """Validate an access token without touching storage.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is malformed or badly signed
        """
        return self._token_service.validate_access_token(token)

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token into a brand-new token pair.

        The presented token is consumed first, so a replay fails even if the
        original request is still in flight.

        Raises:
            InvalidTokenError: If the token is unknown, already used or expired
        """
        async with storage_errors("consume refresh token"):
            stored = await self._tokens.consume_refresh_token(refresh_token)

        if stored is None:
            logger.warning("Refresh with unknown or reused token")
            raise InvalidTokenError()

        if stored.is_expired():
            async with storage_errors("discard expired refresh token"):
                await self._tokens.commit()
            logger.info("Refresh with expired token", extra={"user_id": stored.user_id})
            raise InvalidTokenError()

        async with storage_errors("get user by id"):
            user = await self._users.get_user_by_id(stored.user_id)
        if user is None:
            raise InvalidTokenError()

        return await self.generate_tokens(user)

    async def revoke_refresh_token(self, refresh_token: str) -> None:
        """Delete a refresh token. Unknown tokens are ignored."""
        async with storage_errors("delete refresh token"):
            await self._tokens.delete_refresh_token(refresh_token)
            await self._tokens.commit()

    async def logout(self, refresh_token: str) -> None:
        """Invalidate the session bound to ``refresh_token``."""
        await self.revoke_refresh_token(refresh_token)

    async def revoke_all_for_user(self, user_id: str) -> int:
        """Delete every refresh token owned by ``user_id``."""
        async with storage_errors("delete user refresh tokens"):
            count = await self._tokens.delete_user_refresh_tokens(user_id)
            await self._tokens.commit()
        logger.info("Revoked refresh tokens", extra={"user_id": user_id, "count": count})
        return count

    async def get_user(self, user_id: str) -> User:
        """Get a user by id.

        Raises:
            UserNotFoundError: If no such user exists
        """
        async with storage_errors("get user by id"):
            user = await self._users.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user
