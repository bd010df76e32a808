"""Request/response schemas for auth and password reset endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    RESET_CODE_DIGITS,
)
from app.models.enums import Role, UserStatus


class LoginRequest(BaseModel):
    """Credentials for login; identifier may be a username or an email."""

    username: str = Field(..., min_length=1, max_length=255, description="Username or email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class CurrentUser(BaseModel):
    """Authenticated principal resolved from the bearer token for one request."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: Role
    status: UserStatus


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: CurrentUser


class VerifyResponse(BaseModel):
    valid: bool = True
    user: CurrentUser
    expires_at: datetime | None = None


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetVerify(BaseModel):
    email: EmailStr
    token: str = Field(
        ...,
        min_length=RESET_CODE_DIGITS,
        max_length=RESET_CODE_DIGITS,
        pattern=r"^\d+$",
        description="One-time code sent by email",
    )


class PasswordResetConfirm(PasswordResetVerify):
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
