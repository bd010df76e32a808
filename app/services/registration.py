"""Registration workflow: public requests, admin approval (creates a User) or rejection.

A request is resolved exactly once. Both transitions are conditional UPDATEs on
status = 'pending', so when two admins act on the same request concurrently the
database lets only one of them through and the other gets InvalidState.
"""

import logging
import re
from datetime import UTC, datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    DuplicateEmail,
    DuplicateUsername,
    Forbidden,
    InvalidState,
    NotFound,
    ServiceError,
    ValidationError,
)
from app.core.security import hash_password
from app.models import RegistrationRequest, User
from app.models.enums import ROLE_VALUES, RequestStatus, Role, UserStatus
from app.services import audit
from app.services.users import raise_for_integrity_error, validate_credentials

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
REQUIRED_FIELDS = ("name", "email", "mobile_number", "address")


def _clean_submission(**fields: str | None) -> dict[str, str]:
    cleaned: dict[str, str] = {}
    errors: dict[str, str] = {}
    for name in REQUIRED_FIELDS:
        value = (fields.get(name) or "").strip()
        if not value:
            errors[name] = "This field is required."
        cleaned[name] = value
    if cleaned["email"] and not EMAIL_PATTERN.match(cleaned["email"]):
        errors["email"] = "Invalid email format."
    if errors:
        raise ValidationError(details=errors)
    cleaned["email"] = cleaned["email"].lower()
    return cleaned


def submit(
    db: Session,
    name: str,
    email: str,
    mobile_number: str,
    address: str,
) -> RegistrationRequest:
    """Store a new pending request. Duplicate emails are not checked here (see approve)."""
    fields = _clean_submission(
        name=name, email=email, mobile_number=mobile_number, address=address
    )
    request = RegistrationRequest(status=RequestStatus.PENDING.value, **fields)
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info("Registration request submitted", extra={"request_id": request.id})
    return request


def get_request(db: Session, request_id: int) -> RegistrationRequest:
    request = db.get(RegistrationRequest, request_id)
    if request is None:
        raise NotFound("Registration request not found.")
    return request


def list_pending(db: Session) -> list[RegistrationRequest]:
    """Pending requests, oldest first, so the backlog is cleared in submission order."""
    return (
        db.query(RegistrationRequest)
        .filter(RegistrationRequest.status == RequestStatus.PENDING.value)
        .order_by(RegistrationRequest.created_at.asc(), RegistrationRequest.id.asc())
        .all()
    )


def list_requests(db: Session, status: RequestStatus | None = None) -> list[RegistrationRequest]:
    """All requests (newest first), optionally filtered by status."""
    query = db.query(RegistrationRequest)
    if status is not None:
        query = query.filter(RegistrationRequest.status == status.value)
    return query.order_by(
        RegistrationRequest.created_at.desc(), RegistrationRequest.id.desc()
    ).all()


def stats(db: Session) -> dict[str, int]:
    rows = (
        db.query(RegistrationRequest.status, func.count(RegistrationRequest.id))
        .group_by(RegistrationRequest.status)
        .all()
    )
    counts = {s.value: 0 for s in RequestStatus}
    for status, count in rows:
        counts[status] = count
    counts["total"] = sum(counts.values())
    return counts


def _claim(db: Session, request_id: int, new_status: RequestStatus, resolver_id: int, **values) -> None:
    """Move a pending request to new_status inside the current transaction, or raise InvalidState."""
    result = db.execute(
        update(RegistrationRequest)
        .where(
            RegistrationRequest.id == request_id,
            RegistrationRequest.status == RequestStatus.PENDING.value,
        )
        .values(
            status=new_status.value,
            resolved_at=datetime.now(UTC),
            resolved_by=resolver_id,
            **values,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidState("Registration request has already been processed.")


def _ensure_pending(db: Session, request_id: int) -> RegistrationRequest:
    request = get_request(db, request_id)
    if request.status != RequestStatus.PENDING:
        raise InvalidState(
            "Registration request has already been processed.",
            details={"status": request.status},
        )
    return request


def approve(
    db: Session,
    request_id: int,
    username: str,
    password: str,
    role: Role | str,
    approver: User,
) -> User:
    """
    Approve a pending request: create an approved User and resolve the request.

    The request is claimed first, so a concurrent resolver always loses with
    InvalidState. The claim, the user insert and the user_id link commit together.
    """
    if role not in ROLE_VALUES:
        raise ValidationError(details={"role": f"Must be one of: {', '.join(ROLE_VALUES)}."})
    role = Role(role)
    if role == Role.SUPER_ADMIN and approver.role != Role.SUPER_ADMIN:
        raise Forbidden("Only a super admin can grant the super_admin role.")
    username = username.strip()
    validate_credentials(username, password)

    request = _ensure_pending(db, request_id)
    _claim(db, request_id, RequestStatus.APPROVED, approver.id)
    try:
        email = request.email
        if db.query(User.id).filter(User.username == username).first() is not None:
            raise DuplicateUsername()
        if db.query(User.id).filter(func.lower(User.email) == email.lower()).first() is not None:
            raise DuplicateEmail("An account with this email already exists.")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role.value,
            status=UserStatus.APPROVED.value,
            mobile_number=request.mobile_number,
            address=request.address,
            created_by=approver.id,
        )
        db.add(user)
        db.flush()
        db.execute(
            update(RegistrationRequest)
            .where(RegistrationRequest.id == request_id)
            .values(user_id=user.id)
            .execution_options(synchronize_session=False)
        )
        audit.record(
            db,
            approver.id,
            "approve_registration",
            "registration_request",
            request_id,
            f"Approved as {username} with role {role.value}",
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise_for_integrity_error(e)
        raise
    except ServiceError:
        # Releases the claim so the request stays pending.
        db.rollback()
        raise
    db.refresh(user)
    logger.info(
        "Registration approved",
        extra={"request_id": request_id, "user_id": user.id, "role": role.value},
    )
    return user


def reject(
    db: Session,
    request_id: int,
    approver: User,
    reason: str | None = None,
) -> RegistrationRequest:
    """Reject a pending request, keeping it as an audit record with the reason."""
    _ensure_pending(db, request_id)
    reason = reason.strip() if reason and reason.strip() else None
    _claim(db, request_id, RequestStatus.REJECTED, approver.id, resolution_reason=reason)
    audit.record(
        db,
        approver.id,
        "reject_registration",
        "registration_request",
        request_id,
        reason,
    )
    db.commit()
    logger.info("Registration rejected", extra={"request_id": request_id})
    request = db.get(RegistrationRequest, request_id, populate_existing=True)
    return request
