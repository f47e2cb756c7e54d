"""Health check models for the records API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class DatabaseHealth(BaseModel):
    """Database health status model.

    Attributes:
        status: Connection status
        type: Database type (duckdb or postgresql)
        response_time_ms: Database response time in milliseconds (optional)
    """
    status: Literal["connected", "disconnected"]
    type: str
    response_time_ms: float | None = Field(None, description="Database response time in milliseconds")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: Literal["healthy", "unhealthy"]
    timestamp: datetime = Field(..., description="Current UTC timestamp")
    version: str = Field(..., description="Application version")
    database: DatabaseHealth
