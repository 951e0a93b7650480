"""
Health Check Endpoints

Service health and liveness endpoints for monitoring and load balancing.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request

from docserve.models.health import HealthResponse, LivenessResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Report service status, version and the API documents being served.",
)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint."""
    provider = getattr(request.app.state, "document_provider", None)

    return HealthResponse(
        status="healthy",
        version=request.app.version,
        timestamp=datetime.now(UTC).isoformat(),
        documents=provider.document_names if provider is not None else [],
    )


@router.get(
    "/live",
    response_model=LivenessResponse,
    summary="Service liveness check",
)
async def liveness_check() -> LivenessResponse:
    return LivenessResponse(status="alive")
