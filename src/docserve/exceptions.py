"""
Document Serving Errors

Exception hierarchy raised while building and serving API documents.
"""

from __future__ import annotations

from typing import Any


class DocServeError(Exception):
    """Base class for all docserve errors."""


class UnknownDocumentError(DocServeError):
    """Requested document name is not registered with the provider."""

    def __init__(self, document_name: str):
        self.document_name = document_name
        super().__init__(f"Unknown API document: {document_name!r}")


class InvalidArgumentError(DocServeError, ValueError):
    """A required collaborator was not supplied."""

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"Argument {argument!r} must not be None")


class InvalidAnnotationError(DocServeError, ValueError):
    """Response annotation declared with a malformed status code."""

    def __init__(self, status_code: Any):
        self.status_code = status_code
        super().__init__(f"Invalid response status code: {status_code!r}")


class PreSerializeFilterError(DocServeError):
    """A pre-serialize filter raised while transforming a document."""

    def __init__(self, filter_name: str, document_name: str):
        self.filter_name = filter_name
        self.document_name = document_name
        super().__init__(
            f"Pre-serialize filter {filter_name!r} failed for document {document_name!r}"
        )


class SchemaIdConflictError(DocServeError):
    """Two distinct types resolved to the same schema definition name."""

    def __init__(self, schema_id: str, existing: Any, incoming: Any):
        self.schema_id = schema_id
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"Conflicting schema id {schema_id!r} for {existing!r} and {incoming!r}"
        )
