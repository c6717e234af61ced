"""Identity models for authentication."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """User role enumeration, ordered user < operator < admin."""

    USER = "user"
    OPERATOR = "operator"
    ADMIN = "admin"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """User account."""

    id: str
    email: str
    password_hash: str
    first_name: str = ""
    last_name: str = ""
    role: UserRole = UserRole.USER
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __repr__(self) -> str:
        """Hide password hash in repr."""
        return f"User(id={self.id!r}, email={self.email!r}, role={self.role.value!r})"


@dataclass
class RefreshToken:
    """Stored refresh token."""

    user_id: str
    token: str
    expires_at: datetime
    created_at: datetime = field(default_factory=_utcnow)
    id: Optional[str] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the token is past its expiry."""
        return (now or _utcnow()) >= self.expires_at


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token issued together."""

    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class Principal:
    """Identity derived from a validated access token."""

    user_id: str
    role: UserRole
