"""
Document Error Mapping

Maps document serving failures raised by the serving middleware to HTTP
responses. Must be installed outside the serving middleware.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request, Response, status
from starlette.responses import JSONResponse

from docserve.exceptions import UnknownDocumentError


async def document_error_middleware(request: Request, call_next: Callable) -> Response:
    """Answer unknown document names with 404."""
    try:
        return await call_next(request)
    except UnknownDocumentError as exc:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc), "document_name": exc.document_name},
        )
