"""Schema for the health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    service: str = Field(default="y4d-admin-api")
    version: str = Field(..., description="API version reported by the app")
    environment: str = Field(..., description="APP_ENV the process runs with (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        ..., description="Whether a trivial query against the database succeeded"
    )
