"""Response envelopes shared by every endpoint: a success variant and an error variant."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {"success": true, "data": ..., "message": optional}."""

    success: Literal[True] = True
    data: T
    message: str | None = Field(default=None, description="Optional human-readable note")


class ErrorBody(BaseModel):
    """Machine-readable error kind plus client-safe message and optional field details."""

    kind: str = Field(..., description="Error kind, e.g. invalid_state, forbidden")
    message: str
    details: Any | None = None


class ErrorResponse(BaseModel):
    """Error envelope: {"success": false, "error": {...}}."""

    success: Literal[False] = False
    error: ErrorBody


def ok(data: T, message: str | None = None) -> ApiResponse[T]:
    """Wrap data in the success envelope."""
    return ApiResponse(data=data, message=message)
