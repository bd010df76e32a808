"""Enumerations shared by ORM models, schemas and services."""

from enum import StrEnum


class Role(StrEnum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class UserStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class RequestStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Action(StrEnum):
    """Capabilities checked by the authorization gate (one can_<action> flag each)."""

    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    PUBLISH = "publish"


ROLE_VALUES: tuple[str, ...] = tuple(r.value for r in Role)
USER_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in UserStatus)
REQUEST_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in RequestStatus)
