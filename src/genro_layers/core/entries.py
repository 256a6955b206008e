"""Entry variants stored in a ``Layer`` and the flattened ``Route`` record.

``MethodEntry`` in genro-routes captures a handler at registration time; here
three entry kinds capture what a layer was told, in the order it was told:

``MiddlewareEntry``
    Handlers applied to every route/subtree entry that follows it in the same
    layer.
``RouteEntry``
    A leaf: HTTP method, path relative to the owning layer, its own handler
    chain (route middleware + terminal handler) and a doc fragment.
``SubtreeEntry``
    A child ``Layer`` plus optional edge handlers and doc. ``shared`` is True
    when the child was built independently and attached by reference; its
    routes are then re-rooted under the attaching layer's prefix.

Only ``doc`` is ever reassigned after an entry is created.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Union

from .paths import normalize_path

if TYPE_CHECKING:  # pragma: no cover
    from .layer import Layer

__all__ = [
    "METHODS",
    "Entry",
    "MiddlewareEntry",
    "Route",
    "RouteEntry",
    "SubtreeEntry",
]

METHODS: tuple[str, ...] = (
    "get",
    "post",
    "put",
    "delete",
    "patch",
    "options",
    "head",
    "all",
    "use",
)


@dataclass
class MiddlewareEntry:
    handlers: list[Callable]
    doc: dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "middleware"


@dataclass
class RouteEntry:
    method: str
    path: str
    handlers: list[Callable]
    doc: dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "route"


@dataclass
class SubtreeEntry:
    layer: Layer
    path: str = ""
    handlers: list[Callable] = field(default_factory=list)
    doc: dict[str, Any] = field(default_factory=dict)
    shared: bool = False

    kind: ClassVar[str] = "subtree"


Entry = Union[MiddlewareEntry, RouteEntry, SubtreeEntry]


@dataclass
class Route:
    """A fully resolved endpoint produced by ``Layer.routes``.

    Attributes:
        index: Position in the flattened list of the layer that produced it.
        path: Absolute path, prefixes joined.
        method: HTTP method tag (one of ``METHODS``).
        handlers: Inherited middleware followed by the entry's own handlers.
        doc: Merged documentation fragment.
        entry: The ``RouteEntry`` this route was emitted from.
    """

    index: int
    path: str
    method: str
    handlers: list[Callable]
    doc: dict[str, Any]
    entry: RouteEntry = field(repr=False, compare=False)

    @property
    def openapi_path(self) -> str:
        """Path with ``{param}`` placeholders, ``/`` for the root."""
        return normalize_path(self.path) or "/"

    @property
    def handler(self) -> Callable | None:
        """Terminal handler of the chain (last element), if any."""
        return self.handlers[-1] if self.handlers else None
