"""
Schema Registry

Resolves response body types into reusable definition references.

Each type is converted once with pydantic's JSON schema generator and stored
under a stable schema id; later lookups of the same type return the same
reference. Nested models are hoisted into the shared definitions map and are
owned by their class just like top-level types.
"""

from __future__ import annotations

import re
import threading
import types
from enum import Enum
from typing import Any, Union, get_args, get_origin

import structlog
from pydantic import BaseModel, TypeAdapter

from docserve.exceptions import InvalidArgumentError, SchemaIdConflictError
from docserve.models.document import SchemaReference

logger = structlog.get_logger()

DEFINITIONS_REF_TEMPLATE = "#/definitions/{model}"

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")


def is_void(type_: Any) -> bool:
    """Whether a declared body type means "no body"."""
    return type_ is None or type_ is type(None)


def schema_id_for(type_: Any) -> str:
    """
    Build a friendly definition name for a type.

    Generic aliases are spelled out, e.g. ``list[Pet]`` becomes ``ListOfPet`` and
    ``dict[str, Pet]`` becomes ``DictOfStrAndPet``. Optional wrappers collapse to
    the wrapped type.
    """
    origin = get_origin(type_)
    if origin is not None:
        args = [arg for arg in get_args(type_) if not is_void(arg)]
        if origin in (Union, types.UnionType) and len(args) == 1:
            return schema_id_for(args[0])
        name = _friendly_name(origin)
        if not args:
            return name
        return f"{name}Of{'And'.join(schema_id_for(arg) for arg in args)}"
    return _friendly_name(type_)


def _friendly_name(type_: Any) -> str:
    name = getattr(type_, "__name__", None) or repr(type_)
    name = _UNSAFE_ID_CHARS.sub("", name)
    return name[:1].upper() + name[1:]


class SchemaRegistry:
    """
    Thread-safe registry of schema definitions.

    One instance is owned per document build pass (or shared, since every
    access is guarded by a lock).
    """

    def __init__(self, ref_template: str = DEFINITIONS_REF_TEMPLATE):
        """
        Initialize schema registry.

        Args:
            ref_template: Template used for ``$ref`` pointers, must contain ``{model}``
        """
        self.ref_template = ref_template

        self._definitions: dict[str, dict[str, Any]] = {}
        self._types: dict[str, Any] = {}
        self._lock = threading.RLock()

    @property
    def definitions(self) -> dict[str, dict[str, Any]]:
        """Snapshot of registered definitions keyed by schema id."""
        with self._lock:
            return dict(self._definitions)

    def get(self, schema_id: str) -> dict[str, Any] | None:
        """Get a registered definition by schema id."""
        with self._lock:
            return self._definitions.get(schema_id)

    def __contains__(self, schema_id: object) -> bool:
        with self._lock:
            return schema_id in self._definitions

    def __len__(self) -> int:
        with self._lock:
            return len(self._definitions)

    def resolve(self, type_: Any) -> SchemaReference:
        """
        Get the reference for a type, registering it on first use.

        Args:
            type_: Response body type (pydantic model, builtin or generic alias)

        Returns:
            Reference to the type's definition

        Raises:
            InvalidArgumentError: If the type is void
            SchemaIdConflictError: If a different type already owns the schema id
        """
        if is_void(type_):
            raise InvalidArgumentError("type_")

        schema_id = schema_id_for(type_)

        with self._lock:
            existing = self._types.get(schema_id)
            if existing is None:
                self._register(schema_id, type_)
            elif existing != type_:
                raise SchemaIdConflictError(schema_id, existing, type_)

        return SchemaReference(ref=self._ref(schema_id))

    def _ref(self, schema_id: str) -> str:
        return self.ref_template.format(model=schema_id)

    def _register(self, schema_id: str, type_: Any) -> None:
        schema = TypeAdapter(type_).json_schema(
            ref_template=self.ref_template, mode="serialization"
        )
        incoming = schema.pop("$defs", {})
        nested = sorted(incoming)

        # Self-referencing models come back as a bare pointer into $defs
        if schema != {"$ref": self._ref(schema_id)}:
            incoming[schema_id] = schema

        owners = _named_types(type_)
        owners[schema_id] = type_

        for name, definition in incoming.items():
            self._check_owner(name, owners.get(name), definition)

        for name, definition in incoming.items():
            self._definitions[name] = definition
            if name in owners:
                self._types.setdefault(name, owners[name])

        logger.debug(
            "Schema registered",
            schema_id=schema_id,
            nested=nested,
        )

    def _check_owner(self, name: str, incoming: Any, definition: dict[str, Any]) -> None:
        existing = self._types.get(name)
        if existing is not None and incoming is not None:
            if existing != incoming:
                raise SchemaIdConflictError(name, existing, incoming)
        elif name in self._definitions and self._definitions[name] != definition:
            raise SchemaIdConflictError(name, existing, incoming)


def _named_types(type_: Any) -> dict[str, Any]:
    """
    Map definition names to the model and enum classes reachable from a type.

    Names shared by two distinct classes are left out; pydantic qualifies those
    itself and their definitions are compared by body instead.
    """
    found: dict[str, Any] = {}
    ambiguous: set[str] = set()
    seen: set[int] = set()
    pending = [type_]

    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))

        if get_origin(current) is not None:
            pending.extend(get_args(current))
            continue
        if not isinstance(current, type):
            continue

        if issubclass(current, BaseModel):
            pending.extend(field.annotation for field in current.model_fields.values())
        elif not issubclass(current, Enum):
            continue

        if found.setdefault(current.__name__, current) is not current:
            ambiguous.add(current.__name__)

    for name in ambiguous:
        found.pop(name)

    return found
