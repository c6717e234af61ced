"""Tests for shared error types."""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from statuspage.core.errors import (
    ForbiddenError,
    InternalError,
    StatusPageError,
    UnauthorizedError,
    storage_errors,
)


class TestStatusPageError:
    def test_default_message(self):
        err = ForbiddenError()
        assert err.message == "insufficient permissions"
        assert err.status_code == 403
        assert str(err) == "insufficient permissions"

    def test_custom_message(self):
        err = UnauthorizedError("missing bearer token")
        assert err.message == "missing bearer token"
        assert err.kind == "unauthorized"


class TestStorageErrors:
    @pytest.mark.asyncio
    async def test_wraps_sqlalchemy_errors(self, caplog):
        cause = OperationalError("SELECT 1", {}, Exception("connection refused"))

        with caplog.at_level(logging.ERROR):
            with pytest.raises(InternalError) as exc_info:
                async with storage_errors("load event"):
                    raise cause

        assert exc_info.value.__cause__ is cause
        assert exc_info.value.message == "internal server error"
        assert "connection refused" not in exc_info.value.message
        assert any("load event" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through(self):
        with pytest.raises(ForbiddenError):
            async with storage_errors("load event"):
                raise ForbiddenError()

    @pytest.mark.asyncio
    async def test_no_error(self):
        async with storage_errors("load event"):
            value = 1
        assert value == 1

    def test_all_errors_share_base(self):
        assert issubclass(InternalError, StatusPageError)
