"""User administration and self-service profile operations."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from app.core.errors import (
    DuplicateEmail,
    DuplicateUsername,
    Forbidden,
    InvalidCredentials,
    InvalidState,
    NotFound,
    ValidationError,
)
from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
    verify_password,
)
from app.models import User
from app.models.enums import Role, UserStatus
from app.services import audit

logger = logging.getLogger(__name__)


def validate_credentials(username: str, password: str) -> None:
    """Length checks shared by approval and admin-created users."""
    errors: dict[str, str] = {}
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        errors["username"] = (
            f"Username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters."
        )
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        errors["password"] = (
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )
    if errors:
        raise ValidationError(details=errors)


def raise_for_integrity_error(error: IntegrityError) -> None:
    """Map a unique-constraint violation on users to the matching duplicate error."""
    message = str(error.orig).lower()
    if "username" in message:
        raise DuplicateUsername() from error
    if "email" in message:
        raise DuplicateEmail() from error


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


def list_users(db: Session) -> list[tuple[User, str | None]]:
    """All users newest first, each paired with the creating admin's username (if any)."""
    creator = aliased(User)
    return (
        db.query(User, creator.username)
        .outerjoin(creator, User.created_by == creator.id)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def check_unique(db: Session, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
    """Raise DuplicateUsername or DuplicateEmail (case-insensitive) if either is taken."""
    if username is not None:
        query = db.query(User.id).filter(User.username == username)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first() is not None:
            raise DuplicateUsername()
    if email is not None:
        query = db.query(User.id).filter(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first() is not None:
            raise DuplicateEmail()


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise_for_integrity_error(e)
        raise


def create_user(
    db: Session,
    actor: User,
    username: str,
    email: str,
    password: str,
    role: Role | str,
    mobile_number: str | None = None,
    address: str | None = None,
) -> User:
    """Admin-created account, approved immediately. Only a super admin may create super admins."""
    role = Role(role)
    if role == Role.SUPER_ADMIN and actor.role != Role.SUPER_ADMIN:
        raise Forbidden("Only a super admin can grant the super_admin role.")
    username = username.strip()
    email = email.strip().lower()
    validate_credentials(username, password)
    check_unique(db, username, email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        status=UserStatus.APPROVED.value,
        mobile_number=mobile_number or None,
        address=address or None,
        created_by=actor.id,
    )
    db.add(user)
    db.flush()
    audit.record(db, actor.id, "create", "user", user.id, f"Created user {username} with role {role.value}")
    _commit(db)
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": role.value, "actor_id": actor.id})
    return user


def update_profile(
    db: Session,
    user: User,
    email: str | None = None,
    mobile_number: str | None = None,
    address: str | None = None,
) -> User:
    """Update the caller's own contact details. Fields left as None are unchanged."""
    if email is not None:
        email = email.strip().lower()
        check_unique(db, None, email, exclude_id=user.id)
        user.email = email
    if mobile_number is not None:
        user.mobile_number = mobile_number.strip() or None
    if address is not None:
        user.address = address.strip() or None
    _commit(db)
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentials("Current password is incorrect.")
    validate_credentials(user.username, new_password)
    user.password_hash = hash_password(new_password)
    audit.record(db, user.id, "change_password", "user", user.id)
    db.commit()
    logger.info("Password changed", extra={"user_id": user.id})


def update_status(db: Session, actor: User, user_id: int, status: UserStatus | str) -> User:
    """Approve, suspend, reject or reset a user to pending. Super admins cannot be deactivated."""
    status = UserStatus(status)
    user = get_user(db, user_id)
    if user.id == actor.id and status != UserStatus.APPROVED:
        raise InvalidState("Cannot deactivate your own account.")
    if user.role == Role.SUPER_ADMIN and status != UserStatus.APPROVED:
        raise Forbidden("A super admin account cannot be deactivated.")
    user.status = status.value
    audit.record(
        db, actor.id, "update_status", "user", user.id,
        f"Changed status of user {user.username} to {status.value}",
    )
    db.commit()
    db.refresh(user)
    logger.info("User status updated", extra={"user_id": user.id, "status": status.value})
    return user


def update_role(db: Session, actor: User, user_id: int, role: Role | str) -> User:
    """Change a user's role. Super admin only; a super admin cannot be demoted."""
    role = Role(role)
    if actor.role != Role.SUPER_ADMIN:
        raise Forbidden("Only a super admin can change roles.")
    user = get_user(db, user_id)
    if user.role == Role.SUPER_ADMIN and role != Role.SUPER_ADMIN:
        if user.id == actor.id:
            raise InvalidState("Cannot remove super_admin role from your own account.")
        raise Forbidden("A super admin cannot be demoted.")
    user.role = role.value
    audit.record(
        db, actor.id, "update_role", "user", user.id,
        f"Changed role of user {user.username} to {role.value}",
    )
    db.commit()
    db.refresh(user)
    logger.info("User role updated", extra={"user_id": user.id, "role": role.value})
    return user


def delete_user(db: Session, actor: User, user_id: int) -> dict[str, int | str]:
    """Hard-delete a user and their permission grants. Super admins are never deleted."""
    if user_id == actor.id:
        raise InvalidState("Cannot delete your own account.")
    user = get_user(db, user_id)
    if user.role == Role.SUPER_ADMIN:
        raise Forbidden("A super admin account cannot be deleted.")
    deleted = {"id": user.id, "username": user.username}
    audit.record(db, actor.id, "delete", "user", user.id, f"Deleted user account: {user.username}")
    db.delete(user)
    db.commit()
    logger.info("User deleted", extra={"user_id": user_id, "actor_id": actor.id})
    return deleted


def user_stats(db: Session) -> dict:
    counts = {s.value: 0 for s in UserStatus}
    for status, count in db.query(User.status, func.count(User.id)).group_by(User.status).all():
        counts[status] = count
    by_role = {
        role: count
        for role, count in db.query(User.role, func.count(User.id))
        .filter(User.status == UserStatus.APPROVED.value)
        .group_by(User.role)
        .all()
    }
    return {"total": sum(counts.values()), **counts, "by_role": by_role}
