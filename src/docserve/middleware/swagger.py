"""
Document Serving Middleware

Serves assembled API documents as JSON for GET requests matching the configured
route template. Every other request is forwarded unchanged to the next
application in the chain.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import compile_path
from starlette.types import ASGIApp

from docserve.config import DocServeSettings
from docserve.exceptions import PreSerializeFilterError, UnknownDocumentError
from docserve.filters import PreSerializeFilter
from docserve.models.document import Document
from docserve.monitoring.metrics import DOCUMENT_BUILD_DURATION, DOCUMENT_REQUESTS
from docserve.provider import DocumentProvider

logger = structlog.get_logger()

DEFAULT_ROUTE_TEMPLATE = "/swagger/{documentName}/swagger.json"
DOCUMENT_MEDIA_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True)
class SwaggerOptions:
    """Document serving options, fixed once the middleware is built."""

    route_template: str = DEFAULT_ROUTE_TEMPLATE
    document_name_parameter: str = "documentName"
    host: str | None = None
    """Opaque host override handed to the provider"""

    pre_serialize_filters: tuple[PreSerializeFilter, ...] = ()
    """Applied in order to every served document"""

    @classmethod
    def from_settings(
        cls,
        settings: DocServeSettings,
        pre_serialize_filters: Sequence[PreSerializeFilter] = (),
    ) -> SwaggerOptions:
        """Build options from application settings."""
        return cls(
            route_template=settings.ROUTE_TEMPLATE,
            document_name_parameter=settings.DOCUMENT_NAME_PARAMETER,
            host=settings.HOST_OVERRIDE,
            pre_serialize_filters=tuple(pre_serialize_filters),
        )


class RouteTemplateMatcher:
    """Match request paths against a ``{placeholder}`` route template."""

    def __init__(self, template: str):
        self.template = template
        self._regex, _, self._convertors = compile_path(template)

    def match(self, path: str) -> dict[str, Any] | None:
        """Return the captured route values, or None when the path does not match."""
        match = self._regex.match(path)
        if match is None:
            return None

        return {
            name: self._convertors[name].convert(value)
            for name, value in match.groupdict().items()
        }


class SwaggerMiddleware(BaseHTTPMiddleware):
    """
    Serve API documents from a route template.

    Request flow:
    - only GET requests whose path matches the template and yields the document
      name parameter are handled; anything else passes through
    - the provider builds the document (host override and path base threaded in)
    - pre-serialize filters run in registration order with the request at hand
    - the document is serialized in full before the response is returned

    Failures are logged with the document name and path, then re-raised for the
    host application to map to a status code.
    """

    def __init__(
        self,
        app: ASGIApp,
        provider: DocumentProvider,
        options: SwaggerOptions | None = None,
    ):
        """
        Initialize document serving middleware.

        Args:
            app: Next ASGI application in the chain
            provider: Builds documents by name
            options: Serving options (route template, host, filters)
        """
        super().__init__(app)
        self.provider = provider
        self.options = options or SwaggerOptions()
        self._matcher = RouteTemplateMatcher(self.options.route_template)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Serve the requested document or pass the request on."""
        document_name = self.requested_document(request)
        if document_name is None:
            return await call_next(request)

        base_path = request.scope.get("root_path") or None
        start_time = time.time()

        try:
            document = self.provider.get_document(
                document_name, self.options.host, base_path
            )
            self._apply_pre_serialize_filters(document, request, document_name)
            response = self._json_response(document)

        except Exception as exc:
            outcome = "unknown" if isinstance(exc, UnknownDocumentError) else "error"
            DOCUMENT_REQUESTS.labels(outcome=outcome).inc()

            logger.error(
                "Document request failed",
                document_name=document_name,
                path=request.url.path,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        DOCUMENT_REQUESTS.labels(outcome="served").inc()
        DOCUMENT_BUILD_DURATION.labels(document_name=document_name).observe(duration)

        logger.debug(
            "Document served",
            document_name=document_name,
            size=len(response.body),
            duration=duration,
        )

        return response

    def requested_document(self, request: Request) -> str | None:
        """Extract the requested document name, or None if this is not a document request."""
        if request.method != "GET":
            return None

        route_values = self._matcher.match(self._request_path(request))
        if route_values is None or self.options.document_name_parameter not in route_values:
            return None

        return str(route_values[self.options.document_name_parameter])

    @staticmethod
    def _request_path(request: Request) -> str:
        path = request.scope["path"]
        root_path = request.scope.get("root_path", "")

        if root_path and path.startswith(root_path):
            path = path[len(root_path):] or "/"

        return path

    def _apply_pre_serialize_filters(
        self, document: Document, request: Request, document_name: str
    ) -> None:
        for pre_serialize_filter in self.options.pre_serialize_filters:
            try:
                pre_serialize_filter(document, request)
            except Exception as exc:
                filter_name = getattr(
                    pre_serialize_filter, "__name__", type(pre_serialize_filter).__name__
                )
                raise PreSerializeFilterError(filter_name, document_name) from exc

    @staticmethod
    def _json_response(document: Document) -> Response:
        return Response(
            content=document.to_json_bytes(),
            status_code=200,
            media_type=DOCUMENT_MEDIA_TYPE,
        )
