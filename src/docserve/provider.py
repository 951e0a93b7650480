"""
Document Provider

Builds a fresh API document per call from operation descriptors, running the
configured operation filters against each operation.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from docserve.annotations import ResponseAnnotationRegistry
from docserve.descriptors import OperationDescriptor
from docserve.exceptions import UnknownDocumentError
from docserve.filters import (
    OperationFilter,
    OperationFilterContext,
    ResponseAnnotationFilter,
)
from docserve.models.document import Document, Info, Operation, Response, Tag
from docserve.schema_registry import SchemaRegistry, is_void

logger = structlog.get_logger()

DescriptorSource = Callable[[], Iterable[OperationDescriptor]]


@dataclass(frozen=True)
class DocumentInfo:
    """Metadata of one named document."""

    title: str
    version: str
    description: str | None = None


class DocumentProvider(Protocol):
    """Source of assembled API documents."""

    def get_document(
        self,
        document_name: str,
        host: str | None = None,
        base_path: str | None = None,
    ) -> Document:
        ...


class RouteDocumentProvider:
    """
    Document provider backed by operation descriptors.

    Every call builds a new document with its own schema registry, so
    concurrent builds never share response maps or definitions.
    """

    def __init__(
        self,
        documents: Mapping[str, DocumentInfo],
        descriptors: DescriptorSource | Iterable[OperationDescriptor],
        annotations: ResponseAnnotationRegistry | None = None,
        operation_filters: Sequence[OperationFilter] | None = None,
        schema_registry_factory: Callable[[], SchemaRegistry] = SchemaRegistry,
    ):
        """
        Initialize document provider.

        Args:
            documents: Document metadata keyed by document name
            descriptors: Descriptors, or a callable returning them per build
            annotations: Response annotation registry
            operation_filters: Filters applied to each operation (default: response annotations)
            schema_registry_factory: Creates the registry for one build pass
        """
        self._documents = dict(documents)
        self.annotations = annotations or ResponseAnnotationRegistry()
        self.operation_filters: tuple[OperationFilter, ...] = tuple(
            operation_filters
            if operation_filters is not None
            else (ResponseAnnotationFilter(),)
        )
        self._schema_registry_factory = schema_registry_factory

        if callable(descriptors):
            self._descriptor_source = descriptors
        else:
            frozen = tuple(descriptors)
            self._descriptor_source = lambda: frozen

    @property
    def document_names(self) -> list[str]:
        """Names of the documents this provider can build."""
        return list(self._documents)

    def get_document(
        self,
        document_name: str,
        host: str | None = None,
        base_path: str | None = None,
    ) -> Document:
        """
        Build a document.

        Args:
            document_name: Registered document name
            host: Externally visible host override
            base_path: Path base the application is mounted under

        Returns:
            Newly assembled document

        Raises:
            UnknownDocumentError: If the name is not registered
        """
        info = self._documents.get(document_name)
        if info is None:
            raise UnknownDocumentError(document_name)

        start_time = time.time()
        schema_registry = self._schema_registry_factory()
        document = Document(
            info=Info(title=info.title, version=info.version, description=info.description),
            host=host,
            base_path=base_path,
        )
        tags: dict[str, None] = {}

        for descriptor in self._descriptor_source():
            if descriptor.group_name not in (None, document_name):
                continue

            operation = self._build_operation(descriptor, schema_registry)
            context = OperationFilterContext(
                document_name=document_name,
                descriptor=descriptor,
                schema_registry=schema_registry,
                annotations=(
                    self.annotations.source_for(descriptor.route_id, descriptor.group)
                    if descriptor.route_id
                    else None
                ),
            )
            for operation_filter in self.operation_filters:
                operation_filter.apply(operation, context)

            document.add_operation(descriptor.path, descriptor.method, operation)
            tags.update(dict.fromkeys(descriptor.tags))

        document.definitions = schema_registry.definitions
        document.tags = [Tag(name=name) for name in tags] or None

        logger.debug(
            "Document built",
            document_name=document_name,
            operations=sum(1 for _ in document.iter_operations()),
            definitions=len(document.definitions),
            duration=time.time() - start_time,
        )

        return document

    @staticmethod
    def _build_operation(
        descriptor: OperationDescriptor, schema_registry: SchemaRegistry
    ) -> Operation:
        operation = Operation(
            operation_id=descriptor.operation_id,
            summary=descriptor.summary,
            tags=list(descriptor.tags) or None,
        )

        # Base response from the route's own response model
        if not is_void(descriptor.response_type):
            key = str(descriptor.status_code or 200)
            operation.responses = {
                key: Response(
                    description="Successful Response",
                    schema_ref=schema_registry.resolve(descriptor.response_type),
                )
            }

        return operation
