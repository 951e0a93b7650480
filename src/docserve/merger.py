"""
Response Metadata Merger

Merges declared response annotations into an operation's response map.
"""

from __future__ import annotations

from docserve.annotations import AnnotationSource, ResponseAnnotation
from docserve.exceptions import InvalidArgumentError
from docserve.models.document import Operation, Response
from docserve.schema_registry import SchemaRegistry, is_void


def merge_responses(
    operation: Operation | None,
    source: AnnotationSource | None,
    schema_registry: SchemaRegistry | None,
) -> None:
    """
    Apply every annotation of a route to its operation, in order.

    Handler-level annotations are applied before group-level ones; when two
    annotations target the same status code the later one wins. Fields are merged
    one by one, so a description already present survives an annotation that only
    declares a body type. Applying the same annotations again leaves the
    operation unchanged.

    Args:
        operation: Operation to mutate in place
        source: Annotations bound to the operation's route
        schema_registry: Registry used to resolve body types

    Raises:
        InvalidArgumentError: If operation, source or schema_registry is None
    """
    if operation is None:
        raise InvalidArgumentError("operation")
    if source is None:
        raise InvalidArgumentError("source")
    if schema_registry is None:
        raise InvalidArgumentError("schema_registry")

    annotations = source.annotations()
    if not annotations:
        return

    if operation.responses is None:
        operation.responses = {}

    for annotation in annotations:
        apply_annotation(operation.responses, annotation, schema_registry)


def apply_annotation(
    responses: dict[str, Response],
    annotation: ResponseAnnotation,
    schema_registry: SchemaRegistry,
) -> Response:
    """Merge a single annotation into a response map and return the entry."""
    key = annotation.key
    response = responses.get(key) or Response()

    if annotation.description:
        response.description = annotation.description

    if not is_void(annotation.type):
        response.schema_ref = schema_registry.resolve(annotation.type)

    responses[key] = response
    return response
