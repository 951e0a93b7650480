"""
Operation Descriptors

Flat description of the HTTP operations a document is built from, plus the
adapter that enumerates them from FastAPI routes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from fastapi.routing import APIRoute, RouteContext, iter_route_contexts
from starlette.routing import BaseRoute

# Verbs that never get their own documented operation
UNDOCUMENTED_METHODS = frozenset({"HEAD", "OPTIONS"})


@dataclass(frozen=True)
class OperationDescriptor:
    """One documented verb on one path."""

    path: str
    method: str
    route_id: str | None = None
    """Key into the response annotation registry"""

    group: str | None = None
    """Group-level annotation attachment point"""

    group_name: str | None = None
    """Document the operation belongs to (None: every document)"""

    summary: str | None = None
    operation_id: str | None = None
    tags: tuple[str, ...] = ()
    status_code: int | None = None
    response_type: Any = None


def _tag_name(tag: Any) -> str:
    return str(getattr(tag, "value", tag))


def describe_routes(
    routes: Iterable[BaseRoute],
    document_for: Callable[[RouteContext], str | None] | None = None,
) -> list[OperationDescriptor]:
    """
    Enumerate documented operations of FastAPI routes.

    Routes contributed by included routers are walked the way FastAPI's own
    OpenAPI generator walks them, so paths carry every inclusion prefix and
    tags carry the tags given at inclusion time.

    Args:
        routes: Application routes, typically ``app.routes``
        document_for: Optional mapping of a route to the document it belongs to

    Returns:
        One descriptor per route and documented method
    """
    descriptors: list[OperationDescriptor] = []

    for route in iter_route_contexts(list(routes)):
        if not isinstance(route.original_route, APIRoute) or not route.include_in_schema:
            continue

        tags = tuple(_tag_name(tag) for tag in route.tags or ())
        group_name = document_for(route) if document_for else None

        for method in sorted(route.methods or ()):
            if method in UNDOCUMENTED_METHODS:
                continue

            descriptors.append(
                OperationDescriptor(
                    path=route.path_format,
                    method=method,
                    route_id=route.name,
                    group=tags[0] if tags else None,
                    group_name=group_name,
                    summary=route.summary or route.name.replace("_", " ").title(),
                    operation_id=route.operation_id or route.unique_id,
                    tags=tags,
                    status_code=route.status_code,
                    response_type=route.response_model,
                )
            )

    return descriptors
