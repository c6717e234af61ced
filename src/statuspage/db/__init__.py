"""Database layer."""

from statuspage.db.database import (
    DatabaseSettings,
    close_db,
    create_tables,
    get_async_session,
    get_db,
    init_db,
)
from statuspage.db.models import Base

__all__ = [
    "Base",
    "DatabaseSettings",
    "close_db",
    "create_tables",
    "get_async_session",
    "get_db",
    "init_db",
]
