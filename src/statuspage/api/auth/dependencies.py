"""Authentication dependencies for FastAPI."""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.api.auth.config import JWTConfig
from statuspage.api.auth.models import Principal, UserRole
from statuspage.api.auth.permissions import has_permission
from statuspage.api.auth.service import AuthService
from statuspage.api.auth.token import InvalidTokenError, TokenExpiredError, TokenService
from statuspage.core.errors import ForbiddenError, UnauthorizedError
from statuspage.db.database import get_db
from statuspage.db.repositories import IdentityRepository

_token_service: Optional[TokenService] = None

security = HTTPBearer(auto_error=False)


def get_token_service() -> TokenService:
    """Get token service singleton."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService(JWTConfig())
    return _token_service


def get_auth_service(
    session: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    """Auth service bound to the request session."""
    repo = IdentityRepository(session)
    return AuthService(users=repo, tokens=repo, token_service=token_service)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> Principal:
    """Identify the caller from the Bearer access token.

    Only the token is consulted; the role carried in its claims is the
    caller's role for the whole request.

    Raises:
        UnauthorizedError: Missing header, or invalid or expired token
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise UnauthorizedError("missing bearer token")

    try:
        user_id, role = token_service.validate_access_token(credentials.credentials)
    except (TokenExpiredError, InvalidTokenError) as e:
        raise UnauthorizedError(e.message) from e
    return Principal(user_id=user_id, role=role)


def require_role(minimum: UserRole) -> Callable:
    """Create a dependency that requires at least ``minimum`` in the hierarchy.

    Args:
        minimum: Lowest role allowed through

    Returns:
        Dependency function returning the principal
    """

    async def role_checker(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not has_permission(principal.role, minimum):
            raise ForbiddenError()
        return principal

    return role_checker
