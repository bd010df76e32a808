"""Central authorization: role defaults merged with per-user permission grants.

Resolution order for a (user, section, sub_section, action) check:

1. super_admin is always allowed.
2. A grant for the exact (user, section, sub_section) decides; when a sub-section is
   requested without an exact grant, the section-wide grant (sub_section NULL) decides.
3. Otherwise the role-default table decides.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.errors import Forbidden, Unauthenticated
from app.models import PermissionGrant, User
from app.models.enums import Action, Role
from app.schemas.permissions import Capabilities

SOURCE_SUPER_ADMIN = "super_admin"
SOURCE_GRANT = "grant"
SOURCE_ROLE_DEFAULT = "role_default"

_NONE = Capabilities()
_VIEW_ONLY = Capabilities(can_view=True)
_AUTHOR = Capabilities(can_view=True, can_create=True, can_edit=True)
_FULL = Capabilities(
    can_view=True, can_create=True, can_edit=True, can_delete=True, can_publish=True
)

# Role defaults for content sections (banners, media, ourwork, mentors, ...).
ROLE_DEFAULTS: dict[Role, Capabilities] = {
    Role.SUPER_ADMIN: _FULL,
    Role.ADMIN: _FULL,
    Role.EDITOR: _AUTHOR,
    Role.VIEWER: _VIEW_ONLY,
}

# Administrative sections where role defaults are narrower than for content.
# Roles missing from a section's table get no access there.
SECTION_ROLE_DEFAULTS: dict[str, dict[Role, Capabilities]] = {
    "users": {
        Role.SUPER_ADMIN: _FULL,
        Role.ADMIN: _AUTHOR,
    },
    "permissions": {
        Role.SUPER_ADMIN: _FULL,
        Role.ADMIN: Capabilities(can_view=True, can_edit=True),
    },
    "registration": {
        Role.SUPER_ADMIN: _FULL,
        Role.ADMIN: Capabilities(can_view=True, can_edit=True),
    },
    "audit": {
        Role.SUPER_ADMIN: _FULL,
        Role.ADMIN: _VIEW_ONLY,
    },
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    source: str


@dataclass(frozen=True)
class EffectivePermissions:
    role_based: bool
    permissions: Capabilities | list[PermissionGrant]


def _as_role(role: str) -> Role | None:
    try:
        return Role(role)
    except ValueError:
        return None


def role_defaults(role: str, section: str | None = None) -> Capabilities:
    """Default capabilities for role, optionally in a specific section. Unknown roles get none."""
    parsed = _as_role(role)
    if parsed is None:
        return _NONE
    if section is not None and section in SECTION_ROLE_DEFAULTS:
        return SECTION_ROLE_DEFAULTS[section].get(parsed, _NONE)
    return ROLE_DEFAULTS[parsed]


def find_grant(
    db: Session,
    user_id: int,
    section: str,
    sub_section: str | None = None,
) -> PermissionGrant | None:
    """Exact (section, sub_section) grant, falling back to the section-wide grant."""
    query = db.query(PermissionGrant).filter(
        PermissionGrant.user_id == user_id,
        PermissionGrant.section == section,
    )
    if sub_section is not None:
        exact = query.filter(PermissionGrant.sub_section == sub_section).first()
        if exact is not None:
            return exact
    return query.filter(PermissionGrant.sub_section.is_(None)).first()


def authorize(
    db: Session,
    user: User,
    section: str,
    action: Action | str,
    sub_section: str | None = None,
) -> AccessDecision:
    """Decide whether user may perform action in section (and sub_section)."""
    action = Action(action)
    if user.role == Role.SUPER_ADMIN:
        return AccessDecision(allowed=True, source=SOURCE_SUPER_ADMIN)

    grant = find_grant(db, user.id, section, sub_section)
    if grant is not None:
        return AccessDecision(allowed=grant.allows(action), source=SOURCE_GRANT)

    defaults = role_defaults(user.role, section)
    return AccessDecision(allowed=defaults.allows(action), source=SOURCE_ROLE_DEFAULT)


def require_access(
    db: Session,
    user: User | None,
    section: str,
    action: Action | str,
    sub_section: str | None = None,
) -> AccessDecision:
    """
    Gate a privileged operation.

    Raises Unauthenticated when there is no principal and Forbidden when the principal
    lacks the capability.
    """
    if user is None:
        raise Unauthenticated()
    decision = authorize(db, user, section, action, sub_section)
    if not decision.allowed:
        scope = f"{section}/{sub_section}" if sub_section else section
        raise Forbidden(
            f"Insufficient permissions to {Action(action).value} {scope}.",
            details={"section": section, "sub_section": sub_section, "action": Action(action).value},
        )
    return decision


def get_effective_permissions(db: Session, user: User) -> EffectivePermissions:
    """Role defaults when the user has no grants, otherwise the user's grant list."""
    grants = (
        db.query(PermissionGrant)
        .filter(PermissionGrant.user_id == user.id)
        .order_by(PermissionGrant.section, PermissionGrant.sub_section)
        .all()
    )
    if not grants:
        return EffectivePermissions(role_based=True, permissions=role_defaults(user.role))
    return EffectivePermissions(role_based=False, permissions=grants)
