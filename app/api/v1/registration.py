"""Registration endpoints: public signup requests and admin approval/rejection."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import require_permission
from app.core.database import get_db
from app.models import User
from app.models.enums import Action, RequestStatus
from app.schemas.common import ApiResponse, ok
from app.schemas.registration import (
    ApproveRequest,
    RegistrationRequestOut,
    RegistrationStats,
    RegistrationSubmit,
    RejectRequest,
)
from app.schemas.users import UserOut
from app.services import registration

router = APIRouter()

SECTION = "registration"


@router.post(
    "/request",
    response_model=ApiResponse[RegistrationRequestOut],
    status_code=status.HTTP_201_CREATED,
)
def submit_request(
    body: RegistrationSubmit,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[RegistrationRequestOut]:
    """Public: submit a registration request. An admin must approve it before login is possible."""
    request = registration.submit(
        db,
        name=body.name,
        email=body.email,
        mobile_number=body.mobile_number,
        address=body.address,
    )
    return ok(
        RegistrationRequestOut.model_validate(request),
        message="Registration request submitted. Waiting for admin approval.",
    )


@router.get("/requests", response_model=ApiResponse[list[RegistrationRequestOut]])
def list_requests(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
    status_filter: Annotated[RequestStatus | None, Query(alias="status")] = None,
) -> ApiResponse[list[RegistrationRequestOut]]:
    """All registration requests, newest first; filter with ?status=pending|approved|rejected."""
    requests = registration.list_requests(db, status_filter)
    return ok([RegistrationRequestOut.model_validate(r) for r in requests])


@router.get("/requests/pending", response_model=ApiResponse[list[RegistrationRequestOut]])
def list_pending(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
) -> ApiResponse[list[RegistrationRequestOut]]:
    """Pending requests, oldest first."""
    return ok([RegistrationRequestOut.model_validate(r) for r in registration.list_pending(db)])


@router.get("/requests/{request_id}", response_model=ApiResponse[RegistrationRequestOut])
def get_request(
    request_id: int,
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
) -> ApiResponse[RegistrationRequestOut]:
    return ok(RegistrationRequestOut.model_validate(registration.get_request(db, request_id)))


@router.post("/requests/{request_id}/approve", response_model=ApiResponse[UserOut])
def approve_request(
    request_id: int,
    body: ApproveRequest,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[User, Depends(require_permission(SECTION, Action.EDIT))],
) -> ApiResponse[UserOut]:
    """Approve a pending request, creating an approved account with the given credentials and role."""
    user = registration.approve(
        db,
        request_id,
        username=body.username,
        password=body.password,
        role=body.role,
        approver=admin,
    )
    out = UserOut.model_validate(user)
    out.created_by_name = admin.username
    return ok(out, message="Registration approved successfully")


@router.post("/requests/{request_id}/reject", response_model=ApiResponse[RegistrationRequestOut])
def reject_request(
    request_id: int,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[User, Depends(require_permission(SECTION, Action.EDIT))],
    body: RejectRequest | None = None,
) -> ApiResponse[RegistrationRequestOut]:
    request = registration.reject(
        db,
        request_id,
        approver=admin,
        reason=body.reason if body else None,
    )
    return ok(
        RegistrationRequestOut.model_validate(request),
        message="Registration request rejected",
    )


@router.get("/stats", response_model=ApiResponse[RegistrationStats])
def get_stats(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission(SECTION, Action.VIEW))],
) -> ApiResponse[RegistrationStats]:
    return ok(RegistrationStats(**registration.stats(db)))
