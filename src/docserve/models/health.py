"""
Health Check Models

Pydantic models for health and liveness endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Overall health status")
    version: str = Field(..., description="Service version")
    timestamp: str = Field(..., description="Check timestamp in ISO format")
    documents: list[str] = Field(..., description="Names of the served API documents")


class LivenessResponse(BaseModel):
    """Liveness check response model."""

    status: str = Field(..., description="Liveness status")
