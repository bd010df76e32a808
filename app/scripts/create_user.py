"""
Create an approved account directly (e.g. the first super admin). Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user root admin@y4d.ngo your-secure-password super_admin
"""
import argparse
import logging
import sys

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.core.errors import ServiceError, ValidationError
from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
)
from app.models import User
from app.models.enums import ROLE_VALUES, Role, UserStatus
from app.services import audit
from app.services.users import check_unique, validate_credentials

logger = logging.getLogger(__name__)


def create_account(db: Session, username: str, email: str, password: str, role: str) -> User:
    """Validate and insert an approved user with no creating admin; audited with actor None."""
    username = username.strip()
    try:
        email = validate_email(email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        raise ValidationError(details={"email": str(e)}) from e
    validate_credentials(username, password)
    check_unique(db, username, email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=Role(role).value,
        status=UserStatus.APPROVED.value,
    )
    db.add(user)
    db.flush()
    audit.record(db, None, "create", "user", user.id, f"Created {username} from CLI with role {user.role}")
    db.commit()
    db.refresh(user)
    logger.info("User created from CLI", extra={"user_id": user.id, "role": user.role})
    return user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create an approved Y4D dashboard user without the registration flow."
    )
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=Role.SUPER_ADMIN.value, choices=ROLE_VALUES)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = create_account(db, args.username, args.email, args.password, args.role)
    except ServiceError as e:
        details = "; ".join(f"{k}: {v}" for k, v in (e.details or {}).items())
        print(f"{e.message} {details}".strip(), file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.username}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    sys.exit(main())
