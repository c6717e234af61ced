"""Pydantic schemas for authentication."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from statuspage.api.auth.models import TokenPair, User
from statuspage.api.auth.password import MAX_PASSWORD_BYTES


class RegisterRequest(BaseModel):
    """Schema for user registration."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v

    def __repr__(self) -> str:
        """Hide password in repr."""
        return f"RegisterRequest(email={self.email!r}, password='***')"


class LoginRequest(BaseModel):
    """Schema for login request."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    def __repr__(self) -> str:
        """Hide password in repr."""
        return f"LoginRequest(email={self.email!r}, password='***')"


class RefreshTokenRequest(BaseModel):
    """Schema for refresh and logout requests."""

    refresh_token: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Schema for user response (no password hash)."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class TokenResponse(BaseModel):
    """Schema for token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenResponse":
        return cls(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_in=pair.expires_in,
        )


class LoginResponse(BaseModel):
    """Schema for login response."""

    user: UserResponse
    tokens: TokenResponse
