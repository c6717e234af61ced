"""Authentication and authorization.

Provides:
- JWTConfig: token and password hashing configuration
- TokenService: access token signing and validation
- PasswordService: bcrypt hashing
- AuthService: registration, login, refresh rotation and revocation
- role_rank / has_permission: the role hierarchy

FastAPI dependencies and routers live in ``dependencies`` and ``router``.
"""

from statuspage.api.auth.config import JWTConfig
from statuspage.api.auth.models import Principal, TokenPair, User, UserRole
from statuspage.api.auth.password import PasswordService
from statuspage.api.auth.permissions import has_permission, role_rank
from statuspage.api.auth.service import (
    AuthService,
    EmailExistsError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from statuspage.api.auth.token import InvalidTokenError, TokenExpiredError, TokenService

__all__ = [
    # Config
    "JWTConfig",
    # Services
    "AuthService",
    "PasswordService",
    "TokenService",
    # Models
    "Principal",
    "TokenPair",
    "User",
    "UserRole",
    # Authorization
    "has_permission",
    "role_rank",
    # Exceptions
    "EmailExistsError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenExpiredError",
    "UserNotFoundError",
]
