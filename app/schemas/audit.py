"""Schemas for the audit log listing."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: int | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    details: str | None = None
    created_at: datetime
