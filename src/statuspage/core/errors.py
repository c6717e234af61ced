"""Error taxonomy shared by every API module.

Each domain error carries a machine-stable ``kind`` and the HTTP status
class it maps to. Storage and infrastructure failures never reach callers
verbatim: they are wrapped into :class:`InternalError`.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class StatusPageError(Exception):
    """Base class for errors surfaced to API callers."""

    kind: str = "error"
    status_code: int = 400
    default_message: str = "request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InternalError(StatusPageError):
    """Unexpected failure; details are logged, never returned."""

    kind = "internal_error"
    status_code = 500
    default_message = "internal server error"


class UnauthorizedError(StatusPageError):
    """No identity, or the presented identity could not be validated."""

    kind = "unauthorized"
    status_code = 401
    default_message = "unauthorized"


class ForbiddenError(StatusPageError):
    """Identity is valid but its role is insufficient."""

    kind = "forbidden"
    status_code = 403
    default_message = "insufficient permissions"


@asynccontextmanager
async def storage_errors(context: str) -> AsyncIterator[None]:
    """Wrap SQLAlchemy failures raised inside the block into InternalError.

    Args:
        context: Short description of the operation, used in the server log.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("Storage failure during %s", context)
        raise InternalError() from e
