"""Audit trail for administrative mutations."""

import logging

from sqlalchemy.orm import Session

from app.models import AuditLog

logger = logging.getLogger(__name__)

DETAILS_MAX_LENGTH = 1000


def record(
    db: Session,
    actor_id: int | None,
    action: str,
    resource_type: str,
    resource_id: int | str | None,
    details: str | None = None,
) -> AuditLog:
    """Add an audit row to the current transaction; the caller commits."""
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details[:DETAILS_MAX_LENGTH] if details else None,
    )
    db.add(entry)
    logger.info(
        "Audit: %s %s",
        action,
        resource_type,
        extra={"actor_id": actor_id, "resource_id": entry.resource_id},
    )
    return entry


def list_entries(
    db: Session,
    resource_type: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[AuditLog]:
    """Newest first, optionally filtered by resource type."""
    query = db.query(AuditLog)
    if resource_type:
        query = query.filter(AuditLog.resource_type == resource_type)
    return (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
