"""Standardized response models for service-level endpoints."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class StandardResponse(BaseModel, Generic[T]):
    """Envelope for service endpoints (health, status)."""

    success: bool = Field(description="Whether the request was successful")
    data: T | None = Field(default=None, description="Response data")
    message: str | None = Field(default=None, description="Human-readable message")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Response timestamp (UTC)"
    )


class HealthStatus(BaseModel):
    """Health check response model."""

    status: str = Field(
        description="Overall health status", examples=["healthy", "unhealthy"]
    )
    connections: int = Field(default=0, description="Registered OLAP connections")
    cache: dict[str, Any] = Field(
        default_factory=dict, description="Result cache statistics"
    )
    version: str = Field(description="Application version")
    uptime: float | None = Field(
        default=None, description="Application uptime in seconds"
    )
