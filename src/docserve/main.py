"""
docserve - FastAPI Application

Application factory wiring the document serving middleware, response
annotations and ambient middleware around a FastAPI application.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import APIRouter, FastAPI, Request
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from docserve.annotations import ResponseAnnotationRegistry
from docserve.config import DocServeSettings, settings
from docserve.descriptors import describe_routes
from docserve.middleware.errors import document_error_middleware
from docserve.middleware.logging import logging_middleware
from docserve.middleware.metrics import metrics_middleware
from docserve.middleware.swagger import SwaggerMiddleware, SwaggerOptions
from docserve.provider import DocumentInfo, RouteDocumentProvider
from docserve.routes import health


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger = structlog.get_logger()

    try:
        logger.info(
            "Starting docserve",
            version=app.version,
            documents=app.state.document_provider.document_names,
        )
        yield
    finally:
        logger.info("Shutting down docserve")


def create_app(
    routers: Sequence[APIRouter] = (),
    annotations: ResponseAnnotationRegistry | None = None,
    options: SwaggerOptions | None = None,
    documents: Mapping[str, DocumentInfo] | None = None,
    app_settings: DocServeSettings | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        routers: Routers making up the documented API
        annotations: Response annotations declared for the routers' handlers
        options: Document serving options (default: from settings)
        documents: Served documents (default: ``DOCUMENTS`` setting)
        app_settings: Settings override
    """
    app_settings = app_settings or settings
    annotations = annotations or ResponseAnnotationRegistry()

    app = FastAPI(
        title=app_settings.SERVICE_NAME,
        version=app_settings.SERVICE_VERSION,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.include_router(health.router, tags=["health"])
    for router in routers:
        app.include_router(router)

    if documents is None:
        documents = {
            name: DocumentInfo(title=title, version=app_settings.SERVICE_VERSION)
            for name, title in app_settings.DOCUMENTS.items()
        }

    # Routes are enumerated per build so routes added after creation are documented
    provider = RouteDocumentProvider(
        documents=documents,
        descriptors=lambda: describe_routes(app.routes),
        annotations=annotations,
    )
    app.state.document_provider = provider
    app.state.response_annotations = annotations

    # Middleware added later wraps middleware added earlier
    app.add_middleware(
        SwaggerMiddleware,
        provider=provider,
        options=options or SwaggerOptions.from_settings(app_settings),
    )

    @app.middleware("http")
    async def add_document_error_middleware(request: Request, call_next):
        return await document_error_middleware(request, call_next)

    @app.middleware("http")
    async def add_logging_middleware(request: Request, call_next):
        return await logging_middleware(request, call_next)

    if app_settings.ENABLE_METRICS:
        @app.middleware("http")
        async def add_metrics_middleware(request: Request, call_next):
            return await metrics_middleware(request, call_next)

        @app.get("/metrics", include_in_schema=False)
        async def metrics() -> Response:
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "docserve.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )
