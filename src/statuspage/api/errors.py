"""Exception handlers turning errors into the JSON error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from statuspage.core.errors import InternalError, StatusPageError

logger = logging.getLogger(__name__)


def error_body(kind: str, message: str, **extra) -> dict:
    """Build ``{"error": {"kind": ..., "message": ...}}``."""
    return {"error": {"kind": kind, "message": message, **extra}}


async def status_page_error_handler(request: Request, exc: StatusPageError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "kind": exc.kind},
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.kind, exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body(
            "validation_error",
            "invalid request",
            details=jsonable_encoder(exc.errors()),
        ),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = "not_found" if exc.status_code == 404 else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(kind, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    internal = InternalError()
    return JSONResponse(
        status_code=internal.status_code,
        content=error_body(internal.kind, internal.message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope handlers on ``app``."""
    app.add_exception_handler(StatusPageError, status_page_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
