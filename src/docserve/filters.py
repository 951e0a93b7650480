"""
Document Filters

Operation filters run by the provider while a document is built, and stock
pre-serialize filters run by the serving middleware with the request at hand.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from starlette.requests import Request

from docserve.annotations import AnnotationSource
from docserve.descriptors import OperationDescriptor
from docserve.merger import merge_responses
from docserve.models.document import Document, Operation
from docserve.schema_registry import SchemaRegistry

PreSerializeFilter = Callable[[Document, Request], None]


@dataclass(frozen=True)
class OperationFilterContext:
    """Everything an operation filter may consult during a build pass."""

    document_name: str
    descriptor: OperationDescriptor
    schema_registry: SchemaRegistry
    annotations: AnnotationSource | None = None


class OperationFilter(Protocol):
    """Transform applied to every operation of a document under construction."""

    def apply(self, operation: Operation, context: OperationFilterContext) -> None:
        ...


class ResponseAnnotationFilter:
    """Merge the route's declared response annotations into the operation."""

    def apply(self, operation: Operation, context: OperationFilterContext) -> None:
        # Operations without a bound route have nothing declared
        if context.annotations is None:
            return

        merge_responses(operation, context.annotations, context.schema_registry)


def set_host_from_forwarded_headers(document: Document, request: Request) -> None:
    """
    Rewrite host and base path from reverse proxy headers.

    Uses the first ``X-Forwarded-Host`` value and prepends ``X-Forwarded-Prefix``
    to the document base path.
    """
    forwarded_host = request.headers.get("x-forwarded-host")
    if forwarded_host:
        document.host = forwarded_host.split(",")[0].strip()

    prefix = request.headers.get("x-forwarded-prefix", "").rstrip("/")
    if prefix:
        document.base_path = prefix + (document.base_path or "")
