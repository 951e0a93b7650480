"""
Metrics Middleware

Prometheus request metrics labelled by route template rather than raw path.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import Request, Response

from docserve.monitoring.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


async def metrics_middleware(request: Request, call_next: Callable) -> Response:
    """Track request counts, durations and in-flight requests."""
    ACTIVE_REQUESTS.inc()
    start_time = time.time()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
        return response

    finally:
        route = _route_label(request)
        REQUEST_COUNT.labels(
            method=request.method, route=route, status_code=status_code
        ).inc()
        REQUEST_DURATION.labels(method=request.method, route=route).observe(
            time.time() - start_time
        )
        ACTIVE_REQUESTS.dec()
