"""Permission management: bulk replace of a user's per-section grants."""

import logging

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, ValidationError
from app.models import PermissionGrant, User
from app.models.enums import Role
from app.schemas.permissions import GrantIn
from app.services import audit
from app.services.users import get_user

logger = logging.getLogger(__name__)


def list_grants(db: Session, user_id: int) -> list[PermissionGrant]:
    get_user(db, user_id)
    return (
        db.query(PermissionGrant)
        .filter(PermissionGrant.user_id == user_id)
        .order_by(PermissionGrant.section, PermissionGrant.sub_section)
        .all()
    )


def _check_unique_scopes(grants: list[GrantIn]) -> None:
    seen: set[tuple[str, str | None]] = set()
    duplicates: list[str] = []
    for grant in grants:
        scope = (grant.section, grant.sub_section)
        if scope in seen:
            duplicates.append(f"{grant.section}/{grant.sub_section}" if grant.sub_section else grant.section)
        seen.add(scope)
    if duplicates:
        raise ValidationError(
            "Each section/sub_section may appear only once.",
            details={"permissions": sorted(set(duplicates))},
        )


def replace_grants(db: Session, user_id: int, grants: list[GrantIn], actor: User) -> int:
    """
    Replace every grant of user_id with grants; return the number inserted.

    Delete and insert run in one transaction. An empty list clears all overrides so the
    user falls back to role defaults. Super admin permissions cannot be overridden.
    """
    target = get_user(db, user_id)
    if target.role == Role.SUPER_ADMIN:
        raise Forbidden("Super admin permissions cannot be overridden.")
    _check_unique_scopes(grants)

    db.execute(delete(PermissionGrant).where(PermissionGrant.user_id == user_id))
    for grant in grants:
        db.add(
            PermissionGrant(
                user_id=user_id,
                section=grant.section,
                sub_section=grant.sub_section,
                can_view=grant.can_view,
                can_create=grant.can_create,
                can_edit=grant.can_edit,
                can_delete=grant.can_delete,
                can_publish=grant.can_publish,
            )
        )
    audit.record(
        db,
        actor.id,
        "update_permissions",
        "user",
        user_id,
        f"Replaced permissions for user {target.username} ({len(grants)} grants)",
    )
    db.commit()
    # The bulk delete bypasses the session; drop any stale grant objects.
    db.expire(target, ["permission_grants"])
    logger.info(
        "Permissions replaced",
        extra={"user_id": user_id, "grant_count": len(grants), "actor_id": actor.id},
    )
    return len(grants)
