"""ORM model for per-user, per-section permission overrides."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import relationship

from app.models.base import Base


class PermissionGrant(Base):
    """
    Capability flags for one user in one content section (optionally one sub-section).

    Absence of a row means the role defaults apply.
    """

    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "section", "sub_section", name="uq_user_permissions_scope"),
        # NULL sub_sections never collide in the constraint above.
        Index(
            "uq_user_permissions_section_wide",
            "user_id",
            "section",
            unique=True,
            postgresql_where=text("sub_section IS NULL"),
            sqlite_where=text("sub_section IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    section = Column(String(100), nullable=False)
    sub_section = Column(String(100), nullable=True)
    can_view = Column(Boolean, nullable=False, default=False)
    can_create = Column(Boolean, nullable=False, default=False)
    can_edit = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)
    can_publish = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="permission_grants")

    def allows(self, action: str) -> bool:
        """Return the flag for action (view, create, edit, delete, publish)."""
        return bool(getattr(self, f"can_{action}"))
