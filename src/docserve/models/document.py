"""
API Document Models

Pydantic models for Swagger 2.0 style API description documents.
Serialization uses the wire aliases and omits unset optional fields.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SchemaReference(BaseModel):
    """Pointer to a definition registered in a schema registry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ref: str = Field(..., alias="$ref", description="JSON pointer to the definition")

    @property
    def schema_id(self) -> str:
        """Definition name the reference points at."""
        return self.ref.rsplit("/", 1)[-1]


class Response(BaseModel):
    """One status-code outcome of an operation."""

    model_config = ConfigDict(populate_by_name=True)

    description: str | None = Field(default=None, description="Human-readable description")
    schema_ref: SchemaReference | None = Field(
        default=None, alias="schema", description="Response body schema"
    )


class Operation(BaseModel):
    """One HTTP verb on one path."""

    model_config = ConfigDict(populate_by_name=True)

    operation_id: str | None = Field(default=None, alias="operationId")
    summary: str | None = None
    tags: list[str] | None = None
    responses: dict[str, Response] | None = Field(
        default=None, description="Responses keyed by status code string"
    )


class Info(BaseModel):
    """Document metadata."""

    title: str
    version: str
    description: str | None = None


class Tag(BaseModel):
    """Operation grouping tag."""

    name: str
    description: str | None = None


class Document(BaseModel):
    """Full API description for one named API surface."""

    model_config = ConfigDict(populate_by_name=True)

    swagger: str = "2.0"
    info: Info
    host: str | None = None
    base_path: str | None = Field(default=None, alias="basePath")
    paths: dict[str, dict[str, Operation]] = Field(default_factory=dict)
    definitions: dict[str, dict[str, Any]] = Field(default_factory=dict)
    tags: list[Tag] | None = None

    def add_operation(self, path: str, method: str, operation: Operation) -> None:
        """Attach an operation under its path and lower-cased verb."""
        self.paths.setdefault(path, {})[method.lower()] = operation

    def get_operation(self, path: str, method: str) -> Operation | None:
        """Look up an operation by path and verb."""
        return self.paths.get(path, {}).get(method.lower())

    def iter_operations(self) -> Iterator[tuple[str, str, Operation]]:
        """Yield (path, method, operation) for every operation."""
        for path, item in self.paths.items():
            for method, operation in item.items():
                yield path, method, operation

    def to_json_bytes(self) -> bytes:
        """Serialize to UTF-8 JSON."""
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
