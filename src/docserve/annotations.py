"""
Response Annotations

Explicit, statically registered response metadata for documented routes.

Annotations are declared at two levels: on a single handler (keyed by route id)
and on a group of handlers (keyed by group id, usually the router tag). Routes are
associated with a group either explicitly through ``assign`` or by the group the
route descriptor reports.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from docserve.exceptions import InvalidAnnotationError

F = TypeVar("F", bound=Callable[..., Any])


def normalize_status_code(value: Any) -> int:
    """
    Coerce a declared status code to an integer HTTP status.

    Raises:
        InvalidAnnotationError: If the value is not an integer in 100-599
    """
    if isinstance(value, bool):
        raise InvalidAnnotationError(value)

    if isinstance(value, int):
        code = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        code = int(value.strip())
    else:
        raise InvalidAnnotationError(value)

    if not 100 <= code <= 599:
        raise InvalidAnnotationError(value)

    return code


@dataclass(frozen=True)
class ResponseAnnotation:
    """Declared response outcome of a route."""

    status_code: int
    description: str | None = None
    type: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status_code", normalize_status_code(self.status_code))

    @property
    def key(self) -> str:
        """Canonical response map key."""
        return str(self.status_code)


@dataclass(frozen=True)
class AnnotationSource:
    """Annotations bound to one discovered route."""

    route_id: str
    handler: tuple[ResponseAnnotation, ...] = ()
    group: tuple[ResponseAnnotation, ...] = ()
    group_id: str | None = None

    def annotations(self) -> list[ResponseAnnotation]:
        """
        Union of handler-level and group-level annotations.

        Handler-level annotations come first, so a group-level annotation for the
        same status code is applied later and wins. Exact duplicates are dropped,
        keeping the first occurrence: a group-level annotation equal to an earlier
        handler-level one is not reapplied, so a later handler-level annotation for
        the same status code stays in effect. Handler (200 "A"), (200 "B") with
        group (200 "A") therefore merges to "B".
        """
        merged: list[ResponseAnnotation] = []
        for annotation in (*self.handler, *self.group):
            if annotation not in merged:
                merged.append(annotation)
        return merged

    def __bool__(self) -> bool:
        return bool(self.handler or self.group)


@dataclass
class ResponseAnnotationRegistry:
    """
    Route id to response annotation mapping built at route registration time.

    Example:
        registry = ResponseAnnotationRegistry()

        @router.get("/pets/{pet_id}")
        @registry.responds(200, "The pet", Pet)
        @registry.responds(404, "No such pet")
        async def get_pet(pet_id: int): ...

        registry.declare_group("pets", 500, "Unexpected error", Problem)
    """

    _handlers: dict[str, list[ResponseAnnotation]] = field(default_factory=dict)
    _groups: dict[str, list[ResponseAnnotation]] = field(default_factory=dict)
    _route_groups: dict[str, str] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def declare(
        self,
        route_id: str,
        status_code: int | str,
        description: str | None = None,
        type_: Any = None,
    ) -> ResponseAnnotation:
        """Declare a handler-level response."""
        annotation = ResponseAnnotation(status_code, description, type_)
        with self._lock:
            self._handlers.setdefault(route_id, []).append(annotation)
        return annotation

    def declare_group(
        self,
        group_id: str,
        status_code: int | str,
        description: str | None = None,
        type_: Any = None,
    ) -> ResponseAnnotation:
        """Declare a response shared by every route of a group."""
        annotation = ResponseAnnotation(status_code, description, type_)
        with self._lock:
            self._groups.setdefault(group_id, []).append(annotation)
        return annotation

    def assign(self, route_id: str, group_id: str) -> None:
        """Associate a route with a group, overriding the descriptor's group."""
        with self._lock:
            self._route_groups[route_id] = group_id

    def responds(
        self,
        status_code: int | str,
        description: str | None = None,
        type_: Any = None,
        *,
        route_id: str | None = None,
    ) -> Callable[[F], F]:
        """
        Decorator form of ``declare``.

        The route id defaults to the function name, which is also FastAPI's
        default route name. Stacked decorators keep their top-to-bottom order.
        """
        annotation = ResponseAnnotation(status_code, description, type_)

        def decorator(func: F) -> F:
            key = route_id or func.__name__
            with self._lock:
                self._handlers.setdefault(key, []).insert(0, annotation)
            return func

        return decorator

    def source_for(self, route_id: str, group_id: str | None = None) -> AnnotationSource:
        """
        Collect the annotations that apply to one route.

        Args:
            route_id: Route identifier
            group_id: Group reported by the route descriptor, if any

        Returns:
            Annotation source bound to the route
        """
        with self._lock:
            group_id = self._route_groups.get(route_id, group_id)
            handler = tuple(self._handlers.get(route_id, ()))
            group = tuple(self._groups.get(group_id, ())) if group_id else ()

        return AnnotationSource(
            route_id=route_id,
            handler=handler,
            group=group,
            group_id=group_id,
        )
