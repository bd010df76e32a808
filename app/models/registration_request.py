"""ORM model for public registration requests awaiting admin review."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.models.base import Base, in_clause
from app.models.enums import REQUEST_STATUS_VALUES, RequestStatus


class RegistrationRequest(Base):
    """
    A pending identity claim submitted from the public site.

    status moves pending -> approved or pending -> rejected exactly once and the row is
    kept afterwards as an audit record.
    """

    __tablename__ = "registration_requests"
    __table_args__ = (
        CheckConstraint(f"status IN ({in_clause(REQUEST_STATUS_VALUES)})", name="status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    mobile_number = Column(String(32), nullable=False)
    address = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default=RequestStatus.PENDING.value, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolution_reason = Column(Text, nullable=True)
    # Account created from this request on approval.
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
