"""Role hierarchy and permission checks."""

from typing import Union

from statuspage.api.auth.models import UserRole


def role_rank(role: Union[UserRole, str, None]) -> int:
    """Rank of a role in the hierarchy; unknown roles rank below all known ones."""
    if role == UserRole.ADMIN:
        return 3
    if role == UserRole.OPERATOR:
        return 2
    if role == UserRole.USER:
        return 1
    return 0


def has_permission(actual: Union[UserRole, str, None], required: UserRole) -> bool:
    """Check that ``actual`` is at least as privileged as ``required``."""
    return role_rank(actual) >= role_rank(required)
