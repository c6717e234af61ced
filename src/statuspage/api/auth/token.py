"""Token service for JWT operations."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from statuspage.api.auth.config import JWTConfig
from statuspage.api.auth.models import UserRole
from statuspage.core.errors import StatusPageError


class TokenExpiredError(StatusPageError):
    """Raised when token has expired."""

    kind = "token_expired"
    status_code = 401
    default_message = "token expired"


class InvalidTokenError(StatusPageError):
    """Raised when token is invalid."""

    kind = "invalid_token"
    status_code = 401
    default_message = "invalid token"


class TokenService:
    """Signs and verifies access tokens and mints opaque refresh tokens."""

    REFRESH_TOKEN_BYTES = 32

    def __init__(self, config: JWTConfig) -> None:
        """Initialize token service.

        Args:
            config: JWT configuration
        """
        self.config = config

    @property
    def access_token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.config.access_token_expire_minutes)

    @property
    def refresh_token_lifetime(self) -> timedelta:
        return timedelta(days=self.config.refresh_token_expire_days)

    def create_access_token(
        self,
        user_id: str,
        role: UserRole,
        now: Optional[datetime] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: Subject of the token
            role: Role embedded in the token
            now: Issue time, defaults to the current time
            expires_delta: Custom lifetime

        Returns:
            Encoded JWT token
        """
        issued_at = now or datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = self.access_token_lifetime
        expire = issued_at + expires_delta

        to_encode: dict[str, Any] = {
            "sub": user_id,
            "user_id": user_id,
            "role": role.value,
            "iat": issued_at,
            "exp": expire,
        }

        return jwt.encode(
            to_encode,
            self.config.secret_key,
            algorithm=self.config.algorithm,
        )

    def create_refresh_token(self) -> str:
        """Generate an opaque, URL-safe refresh token."""
        return secrets.token_urlsafe(self.REFRESH_TOKEN_BYTES)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate token.

        Only the configured algorithm is accepted, so tokens signed with
        ``none`` or an asymmetric algorithm are rejected.

        Args:
            token: JWT token to decode

        Returns:
            Decoded token payload

        Raises:
            TokenExpiredError: If token has expired
            InvalidTokenError: If token is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                options={"require": ["exp", "sub"]},
            )
            return payload
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError:
            raise InvalidTokenError()

    def validate_access_token(self, token: str) -> tuple[str, UserRole]:
        """Validate an access token and extract its identity.

        Raises:
            TokenExpiredError: If token has expired
            InvalidTokenError: If token is invalid or carries no usable role
        """
        payload = self.decode_token(token)
        user_id = payload.get("user_id") or payload.get("sub")
        try:
            role = UserRole(payload.get("role"))
        except ValueError:
            raise InvalidTokenError()
        if not user_id:
            raise InvalidTokenError()
        return user_id, role
