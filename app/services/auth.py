"""Authentication: credential check, token issuance and token verification."""

import logging
from datetime import UTC, datetime

import jwt
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.errors import AccountNotApproved, InvalidCredentials, InvalidToken
from app.core.security import create_access_token, decode_access_token, verify_password
from app.models import User
from app.models.enums import UserStatus

logger = logging.getLogger(__name__)


def find_by_identifier(db: Session, identifier: str) -> User | None:
    """Look up a user by username or (case-insensitive) email."""
    identifier = identifier.strip()
    if not identifier:
        return None
    return (
        db.query(User)
        .filter(
            or_(
                User.username == identifier,
                func.lower(User.email) == identifier.lower(),
            )
        )
        .first()
    )


def login(db: Session, identifier: str, password: str) -> tuple[str, User]:
    """
    Authenticate with username or email and password; return (access_token, user).

    Unknown user and wrong password both raise InvalidCredentials. A correct password on
    an account that is not approved raises AccountNotApproved without naming the status.
    """
    user = find_by_identifier(db, identifier)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login rejected", extra={"reason": "invalid_credentials"})
        raise InvalidCredentials()
    if user.status != UserStatus.APPROVED:
        logger.info(
            "Login rejected",
            extra={"reason": "account_not_approved", "user_id": user.id},
        )
        raise AccountNotApproved()

    token = create_access_token(sub=user.id, role=user.role, username=user.username)
    logger.info("Login succeeded", extra={"user_id": user.id, "role": user.role})
    return token, user


def decode(token: str) -> dict:
    """Decode token; raise InvalidToken on bad signature, expiry or malformed payload."""
    try:
        return decode_access_token(token)
    except jwt.PyJWTError as e:
        raise InvalidToken() from e


def token_expiry(payload: dict) -> datetime | None:
    exp = payload.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=UTC)


def verify(db: Session, token: str) -> User:
    """
    Resolve a bearer token to its user.

    The signature and expiry are checked first; the user is then reloaded so that a
    deleted account raises InvalidToken and a suspended one raises AccountNotApproved.
    """
    payload = decode(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        raise InvalidToken("Invalid token payload.") from e

    user = db.get(User, user_id)
    if user is None:
        raise InvalidToken()
    if user.status != UserStatus.APPROVED:
        raise AccountNotApproved()
    return user
