"""Permission endpoints: per-user grant management, role defaults and the caller's effective set."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user, require_permission
from app.core.database import get_db
from app.models import User
from app.models.enums import Action, Role
from app.schemas.common import ApiResponse, ok
from app.schemas.permissions import (
    AccessCheckOut,
    Capabilities,
    EffectivePermissionsOut,
    GrantOut,
    ReplaceGrantsRequest,
    ReplaceGrantsResult,
)
from app.services import authorization, permissions

router = APIRouter()

SECTION = "permissions"


@router.get("/user/{user_id}", response_model=ApiResponse[list[GrantOut]])
def get_user_permissions(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
) -> ApiResponse[list[GrantOut]]:
    grants = permissions.list_grants(db, user_id)
    return ok([GrantOut.model_validate(g) for g in grants])


@router.put("/user/{user_id}", response_model=ApiResponse[ReplaceGrantsResult])
def replace_user_permissions(
    user_id: int,
    body: ReplaceGrantsRequest,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[User, Depends(require_permission(SECTION, Action.EDIT))],
) -> ApiResponse[ReplaceGrantsResult]:
    """
    Replace all grants for a user with the given list.
    An empty list removes every override and reverts the user to role defaults.
    """
    count = permissions.replace_grants(db, user_id, body.permissions, actor=admin)
    return ok(
        ReplaceGrantsResult(user_id=user_id, updated_count=count),
        message="Permissions updated successfully",
    )


@router.get("/role/{role}", response_model=ApiResponse[Capabilities])
def get_role_defaults(
    role: Role,
    _user: Annotated[User, Depends(get_current_user)],
    section: Annotated[str | None, Query(max_length=100)] = None,
) -> ApiResponse[Capabilities]:
    """Default capabilities for a role (content sections unless ?section= is given)."""
    return ok(authorization.role_defaults(role, section))


@router.get("/my-permissions", response_model=ApiResponse[EffectivePermissionsOut])
def get_my_permissions(
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[EffectivePermissionsOut]:
    effective = authorization.get_effective_permissions(db, user)
    if effective.role_based:
        resolved = effective.permissions
    else:
        resolved = [GrantOut.model_validate(g) for g in effective.permissions]
    return ok(
        EffectivePermissionsOut(
            role=user.role,
            role_based=effective.role_based,
            permissions=resolved,
        )
    )


@router.get("/check", response_model=ApiResponse[AccessCheckOut])
def check_access(
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    section: Annotated[str, Query(min_length=1, max_length=100)],
    action: Action,
    sub_section: Annotated[str | None, Query(max_length=100)] = None,
) -> ApiResponse[AccessCheckOut]:
    """Report whether the caller may perform action in section, and which rule decided it."""
    decision = authorization.authorize(db, user, section, action, sub_section)
    return ok(
        AccessCheckOut(
            section=section,
            sub_section=sub_section,
            action=action,
            allowed=decision.allowed,
            source=decision.source,
        )
    )
