"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import Field

from inkwell.schemas.common import CamelModel


class HealthStatus(CamelModel):
    """Service status reported inside the success envelope."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Result of a trivial query against the configured database",
    )
    api_prefix: str = Field(description="Path prefix the API routes are mounted under")
