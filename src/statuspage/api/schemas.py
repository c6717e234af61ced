"""Response envelope shared by all routers."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Successful response body: ``{"data": ...}``."""

    data: T


class ErrorDetail(BaseModel):
    """Error description."""

    kind: str
    message: str
    details: Optional[list[Any]] = None


class ErrorResponse(BaseModel):
    """Error response body: ``{"error": {"kind": ..., "message": ...}}``."""

    error: ErrorDetail


# Documents the error envelope on every route in the OpenAPI schema
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    "4XX": {"model": ErrorResponse, "description": "Client error"},
    "5XX": {"model": ErrorResponse, "description": "Server error"},
}
