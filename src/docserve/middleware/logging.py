"""
Logging Middleware

Request/response logging with structured logging and request correlation.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response

logger = structlog.get_logger()


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    """
    Bind request context for structured logs and log the outcome.

    Reuses an incoming ``X-Request-ID`` when the caller supplies one.
    """
    trace_id = request.headers.get("x-request-id") or str(uuid.uuid4())

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        trace_id=trace_id,
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            "Request failed",
            error=str(exc),
            error_type=type(exc).__name__,
            duration=time.time() - start_time,
            exc_info=True,
        )
        raise

    logger.info(
        "Request completed",
        status_code=response.status_code,
        duration=time.time() - start_time,
    )

    response.headers["X-Trace-ID"] = trace_id
    response.headers["X-Request-ID"] = trace_id

    return response
