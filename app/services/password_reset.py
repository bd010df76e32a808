"""Password reset with emailed one-time codes.

A new request invalidates earlier unused codes for the same user. The HTTP routes are
rate limited per client address (see app.core.rate_limiter).
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core.errors import InvalidToken
from app.core.security import generate_reset_code, hash_password, verify_password
from app.models import PasswordReset, User
from app.models.enums import UserStatus
from app.services import audit
from app.services.mailer import EmailDeliveryError, EmailSender
from app.services.users import validate_credentials

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _approved_user_by_email(db: Session, email: str) -> User | None:
    return (
        db.query(User)
        .filter(
            func.lower(User.email) == email.strip().lower(),
            User.status == UserStatus.APPROVED.value,
        )
        .first()
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes even for timezone-aware columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


@dataclass(frozen=True)
class IssuedCode:
    """A freshly issued reset code, held only long enough to email it."""

    email: str
    username: str
    code: str
    ttl_minutes: int


def request_reset(db: Session, email: str, settings: "Settings") -> IssuedCode | None:
    """
    Issue a reset code when email belongs to an approved account.

    Unknown or inactive emails are a silent no-op (None) so the response does not
    reveal which addresses have accounts. The caller delivers the returned code.
    """
    user = _approved_user_by_email(db, email)
    if user is None:
        logger.info("Password reset requested for unknown or inactive email")
        return None

    db.execute(
        update(PasswordReset)
        .where(PasswordReset.user_id == user.id, PasswordReset.used.is_(False))
        .values(used=True)
    )
    code = generate_reset_code()
    ttl = settings.PASSWORD_RESET_CODE_TTL_MINUTES
    db.add(
        PasswordReset(
            user_id=user.id,
            code_hash=hash_password(code),
            expires_at=datetime.now(UTC) + timedelta(minutes=ttl),
            used=False,
        )
    )
    db.commit()
    logger.info("Password reset code issued", extra={"user_id": user.id})
    return IssuedCode(email=user.email, username=user.username, code=code, ttl_minutes=ttl)


async def deliver_reset_code(sender: EmailSender, issued: IssuedCode) -> bool:
    """Email an issued code. Delivery failures are logged, never raised to the client."""
    try:
        return await sender.send_reset_code(
            issued.email, issued.username, issued.code, issued.ttl_minutes
        )
    except EmailDeliveryError as e:
        logger.error("Password reset email not delivered", extra={"reason": e.message})
        return False


def _find_valid_code(db: Session, email: str, code: str) -> tuple[User, PasswordReset]:
    user = _approved_user_by_email(db, email)
    if user is None:
        raise InvalidToken("Invalid or expired code.")
    now = datetime.now(UTC)
    candidates = (
        db.query(PasswordReset)
        .filter(PasswordReset.user_id == user.id, PasswordReset.used.is_(False))
        .order_by(PasswordReset.created_at.desc(), PasswordReset.id.desc())
        .all()
    )
    for reset in candidates:
        if _as_utc(reset.expires_at) <= now:
            continue
        if verify_password(code, reset.code_hash):
            return user, reset
    raise InvalidToken("Invalid or expired code.")


def verify_code(db: Session, email: str, code: str) -> None:
    """Raise InvalidToken unless code is an unused, unexpired code for email."""
    _find_valid_code(db, email, code)


def reset_password(db: Session, email: str, code: str, new_password: str) -> None:
    """Consume a valid code and set a new password."""
    user, reset = _find_valid_code(db, email, code)
    validate_credentials(user.username, new_password)
    user.password_hash = hash_password(new_password)
    reset.used = True
    audit.record(db, user.id, "reset_password", "user", user.id)
    db.commit()
    logger.info("Password reset completed", extra={"user_id": user.id})
