"""Service error taxonomy. Services raise these; the API layer renders them as error envelopes."""

from typing import Any


class ServiceError(Exception):
    """Base error carrying a machine-readable kind, a client-safe message and optional details."""

    kind: str = "service_error"
    status_code: int = 400
    default_message: str = "Request failed."

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    """Bad input shape or missing fields. details maps field name to problem."""

    kind = "validation_error"
    status_code = 422
    default_message = "Validation failed."


class InvalidCredentials(ServiceError):
    kind = "invalid_credentials"
    status_code = 401
    default_message = "Invalid credentials."


class AccountNotApproved(ServiceError):
    # The stored status is never echoed back.
    kind = "account_not_approved"
    status_code = 403
    default_message = "Account is not active. Please contact an administrator."


class InvalidToken(ServiceError):
    kind = "invalid_token"
    status_code = 401
    default_message = "Invalid or expired token."


class InvalidState(ServiceError):
    kind = "invalid_state"
    status_code = 409
    default_message = "Operation not allowed in the current state."


class DuplicateUsername(ServiceError):
    kind = "duplicate_username"
    status_code = 409
    default_message = "Username already exists."


class DuplicateEmail(ServiceError):
    kind = "duplicate_email"
    status_code = 409
    default_message = "Email already exists."


class Unauthenticated(ServiceError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Not authenticated."


class Forbidden(ServiceError):
    kind = "forbidden"
    status_code = 403
    default_message = "Insufficient permissions."


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404
    default_message = "Resource not found."
