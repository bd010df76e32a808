"""User administration and self-service profile endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user, require_permission, require_super_admin
from app.core.database import get_db
from app.models import User
from app.models.enums import Action
from app.schemas.common import ApiResponse, ok
from app.schemas.users import (
    PasswordChange,
    ProfileUpdate,
    RoleUpdate,
    StatusUpdate,
    UserCreate,
    UserOut,
    UserStats,
)
from app.services import users

router = APIRouter()

SECTION = "users"


def _user_out(user: User) -> UserOut:
    out = UserOut.model_validate(user)
    if user.creator is not None:
        out.created_by_name = user.creator.username
    return out


@router.get("", response_model=ApiResponse[list[UserOut]])
def list_users(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
) -> ApiResponse[list[UserOut]]:
    """List all users, newest first, with the username of the admin who created each."""
    items = []
    for user, creator_name in users.list_users(db):
        out = UserOut.model_validate(user)
        out.created_by_name = creator_name or "System"
        items.append(out)
    return ok(items)


@router.post("", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[User, Depends(require_permission(SECTION, Action.CREATE))],
) -> ApiResponse[UserOut]:
    user = users.create_user(
        db,
        admin,
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
        mobile_number=body.mobile_number,
        address=body.address,
    )
    return ok(_user_out(user), message="User created successfully")


@router.get("/profile", response_model=ApiResponse[UserOut])
def get_profile(
    user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[UserOut]:
    return ok(_user_out(user))


@router.put("/profile", response_model=ApiResponse[UserOut])
def update_profile(
    body: ProfileUpdate,
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[UserOut]:
    updated = users.update_profile(
        db,
        user,
        email=body.email,
        mobile_number=body.mobile_number,
        address=body.address,
    )
    return ok(_user_out(updated), message="Profile updated successfully")


@router.put("/profile/password", response_model=ApiResponse[dict])
def change_password(
    body: PasswordChange,
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[dict]:
    users.change_password(db, user, body.current_password, body.new_password)
    return ok({}, message="Password changed successfully")


@router.get("/stats/overview", response_model=ApiResponse[UserStats])
def get_stats(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
) -> ApiResponse[UserStats]:
    return ok(UserStats(**users.user_stats(db)))


@router.get("/{user_id}", response_model=ApiResponse[UserOut])
def get_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
) -> ApiResponse[UserOut]:
    return ok(_user_out(users.get_user(db, user_id)))


@router.patch("/{user_id}/status", response_model=ApiResponse[UserOut])
def update_status(
    user_id: int,
    body: StatusUpdate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[User, Depends(require_permission(SECTION, Action.EDIT))],
) -> ApiResponse[UserOut]:
    user = users.update_status(db, admin, user_id, body.status)
    return ok(_user_out(user), message=f"User status updated to {user.status}")


@router.patch("/{user_id}/role", response_model=ApiResponse[UserOut])
def update_role(
    user_id: int,
    body: RoleUpdate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[User, Depends(require_super_admin)],
) -> ApiResponse[UserOut]:
    user = users.update_role(db, admin, user_id, body.role)
    return ok(_user_out(user), message=f"User role updated to {user.role}")


@router.delete("/{user_id}", response_model=ApiResponse[dict])
def delete_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[User, Depends(require_permission(SECTION, Action.DELETE))],
) -> ApiResponse[dict]:
    deleted = users.delete_user(db, admin, user_id)
    return ok(deleted, message="User deleted successfully")
