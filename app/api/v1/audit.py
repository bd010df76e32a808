"""Audit log listing for administrators."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import require_permission
from app.core.database import get_db
from app.models import User
from app.models.enums import Action
from app.schemas.audit import AuditLogOut
from app.schemas.common import ApiResponse, ok
from app.services import audit

router = APIRouter()


@router.get("", response_model=ApiResponse[list[AuditLogOut]])
def list_audit_entries(
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[User, Depends(require_permission("audit", Action.VIEW))],
    resource_type: Annotated[str | None, Query(max_length=64)] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> ApiResponse[list[AuditLogOut]]:
    entries = audit.list_entries(db, resource_type=resource_type, limit=limit, offset=offset)
    return ok([AuditLogOut.model_validate(e) for e in entries])
