"""SQLAlchemy ORM models."""

from app.models.audit_log import AuditLog
from app.models.base import Base
from app.models.password_reset import PasswordReset
from app.models.permission_grant import PermissionGrant
from app.models.registration_request import RegistrationRequest
from app.models.user import User

__all__ = [
    "AuditLog",
    "Base",
    "PasswordReset",
    "PermissionGrant",
    "RegistrationRequest",
    "User",
]
