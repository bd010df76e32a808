"""Schemas for admin user management and self-service profile endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from app.models.enums import Role, UserStatus


class UserOut(BaseModel):
    """User entry for admin views (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: Role
    status: UserStatus
    mobile_number: str | None = None
    address: str | None = None
    created_at: datetime
    created_by: int | None = None
    created_by_name: str | None = None


class UserCreate(BaseModel):
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role = Role.VIEWER
    mobile_number: str | None = Field(default=None, max_length=32)
    address: str | None = Field(default=None, max_length=2000)


class ProfileUpdate(BaseModel):
    email: EmailStr | None = None
    mobile_number: str | None = Field(default=None, max_length=32)
    address: str | None = Field(default=None, max_length=2000)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class StatusUpdate(BaseModel):
    status: UserStatus


class RoleUpdate(BaseModel):
    role: Role


class UserStats(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int
    suspended: int
    by_role: dict[str, int]
