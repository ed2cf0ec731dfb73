"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness payload; never contacts devices."""

    status: str = "ok"
    device_count: int = Field(..., ge=0, description="Number of configured device hosts.")


class RootResponse(BaseModel):
    status: str = "ok"
    detail: str = "Metrics are served at /metrics."
