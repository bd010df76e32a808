"""ORM model for application users (credential store)."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base, in_clause
from app.models.enums import ROLE_VALUES, USER_STATUS_VALUES, Role, UserStatus


class User(Base):
    """
    Dashboard account for JWT authentication and role/permission-based access.

    Created by approving a registration request or directly by an admin; never self-activated.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(f"role IN ({in_clause(ROLE_VALUES)})", name="role"),
        CheckConstraint(f"status IN ({in_clause(USER_STATUS_VALUES)})", name="status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.VIEWER.value)
    status = Column(String(32), nullable=False, default=UserStatus.PENDING.value, index=True)
    mobile_number = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    creator = relationship("User", remote_side=[id], foreign_keys=[created_by])
    permission_grants = relationship(
        "PermissionGrant",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED
