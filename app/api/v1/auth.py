"""JWT login, password reset, and the auth dependencies (get_current_user, require_permission)."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import Forbidden, Unauthenticated
from app.core.rate_limiter import auth_rate_limit
from app.models import User
from app.models.enums import Action, Role
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetVerify,
    TokenResponse,
    VerifyResponse,
)
from app.schemas.common import ApiResponse, ok
from app.services import auth as auth_service
from app.services import password_reset
from app.services.authorization import require_access
from app.services.mailer import EmailSender

router = APIRouter()
security = HTTPBearer(auto_error=False)

RESET_REQUESTED_MESSAGE = "If the email belongs to an active account, a reset code has been sent."


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Dependency: require a valid Bearer JWT and return the request's principal."""
    if credentials is None:
        raise Unauthenticated("Access token required.")
    return auth_service.verify(db, credentials.credentials)


def require_permission(
    section: str,
    action: Action,
    sub_section: str | None = None,
) -> Callable[..., User]:
    """Dependency factory: the current user must be allowed action on section."""

    def dependency(
        user: Annotated[User, Depends(get_current_user)],
        db: Annotated[Session, Depends(get_db)],
    ) -> User:
        require_access(db, user, section, action, sub_section)
        return user

    return dependency


def require_super_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    if user.role != Role.SUPER_ADMIN:
        raise Forbidden("Super admin access required.")
    return user


def get_email_sender(settings: Annotated[Settings, Depends(get_settings)]) -> EmailSender:
    return EmailSender(settings)


@router.post("/login", response_model=ApiResponse[TokenResponse])
@auth_rate_limit
def login(
    request: Request,
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ApiResponse[TokenResponse]:
    """
    Authenticate with username (or email) and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    token, user = auth_service.login(db, body.username, body.password)
    return ok(
        TokenResponse(
            access_token=token,
            expires_in=settings.JWT_EXPIRE_MINUTES * 60,
            user=CurrentUser.model_validate(user),
        ),
        message="Login successful",
    )


@router.get("/verify", response_model=ApiResponse[VerifyResponse])
def verify_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[VerifyResponse]:
    """Validate the bearer token and return the user it belongs to."""
    if credentials is None:
        raise Unauthenticated("Access token required.")
    user = auth_service.verify(db, credentials.credentials)
    payload = auth_service.decode(credentials.credentials)
    return ok(
        VerifyResponse(
            user=CurrentUser.model_validate(user),
            expires_at=auth_service.token_expiry(payload),
        )
    )


@router.post("/request-password-reset", response_model=ApiResponse[dict])
@auth_rate_limit
def request_password_reset(
    request: Request,
    body: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    sender: Annotated[EmailSender, Depends(get_email_sender)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ApiResponse[dict]:
    """Send a one-time reset code. The response is identical whether or not the email exists."""
    issued = password_reset.request_reset(db, body.email, settings)
    if issued is not None:
        background_tasks.add_task(password_reset.deliver_reset_code, sender, issued)
    return ok({}, message=RESET_REQUESTED_MESSAGE)


@router.post("/verify-reset-token", response_model=ApiResponse[dict])
@auth_rate_limit
def verify_reset_token(
    request: Request,
    body: PasswordResetVerify,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[dict]:
    password_reset.verify_code(db, body.email, body.token)
    return ok({"valid": True}, message="Code is valid")


@router.post("/reset-password", response_model=ApiResponse[dict])
@auth_rate_limit
def reset_password(
    request: Request,
    body: PasswordResetConfirm,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[dict]:
    password_reset.reset_password(db, body.email, body.token, body.new_password)
    return ok({}, message="Password has been reset successfully")
