"""Pydantic request/response schemas."""

from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    TokenResponse,
    VerifyResponse,
)
from app.schemas.common import ApiResponse, ErrorBody, ErrorResponse, ok
from app.schemas.health import HealthResponse
from app.schemas.permissions import (
    Capabilities,
    EffectivePermissionsOut,
    GrantIn,
    GrantOut,
)
from app.schemas.registration import (
    ApproveRequest,
    RegistrationRequestOut,
    RegistrationSubmit,
    RejectRequest,
)
from app.schemas.users import UserOut

__all__ = [
    "ApiResponse",
    "ApproveRequest",
    "Capabilities",
    "CurrentUser",
    "EffectivePermissionsOut",
    "ErrorBody",
    "ErrorResponse",
    "GrantIn",
    "GrantOut",
    "HealthResponse",
    "LoginRequest",
    "RegistrationRequestOut",
    "RegistrationSubmit",
    "RejectRequest",
    "TokenResponse",
    "UserOut",
    "VerifyResponse",
    "ok",
]
