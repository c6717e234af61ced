"""Core building blocks shared across the API modules."""

from statuspage.core.errors import (
    ForbiddenError,
    InternalError,
    StatusPageError,
    UnauthorizedError,
    storage_errors,
)

__all__ = [
    "StatusPageError",
    "InternalError",
    "UnauthorizedError",
    "ForbiddenError",
    "storage_errors",
]
