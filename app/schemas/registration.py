"""Schemas for the public registration request and admin review endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from app.models.enums import RequestStatus, Role


class RegistrationSubmit(BaseModel):
    """Public signup form. Accounts are only created once an admin approves."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    mobile_number: str = Field(..., min_length=1, max_length=32)
    address: str = Field(..., min_length=1, max_length=2000)


class RegistrationRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    mobile_number: str
    address: str
    status: RequestStatus
    created_at: datetime
    resolved_at: datetime | None = None
    resolved_by: int | None = None
    resolution_reason: str | None = None
    user_id: int | None = None


class ApproveRequest(BaseModel):
    """Credentials and role the admin assigns when approving a request."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role = Role.VIEWER


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class RegistrationStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
