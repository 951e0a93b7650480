"""Pydantic models for served API documents."""

from __future__ import annotations

from docserve.models.document import (
    Document,
    Info,
    Operation,
    Response,
    SchemaReference,
    Tag,
)

__all__ = ["Document", "Info", "Operation", "Response", "SchemaReference", "Tag"]
