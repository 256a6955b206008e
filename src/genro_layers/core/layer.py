"""Route tree node and flattening for Genro Layers.

A ``Layer`` is an ordered list of entries (middleware, route, subtree) plus a
path prefix and a base documentation fragment. Layers are appended to while
the application is being declared and are never reordered; ``routes`` turns
the tree into the linear table a dispatcher needs.

Constructor
-----------
::

    Layer(prefix="", doc=None)

- ``prefix`` is normalised with ``join_path``. Child layers created through
  ``append_subtree``/``route`` embed the full prefix of their ancestors.
- ``doc`` is the base fragment merged beneath every middleware and route
  entry appended afterwards.

Building
--------
- ``append_middleware(handlers, doc)`` / ``middleware(...)``
- ``append_route(method, path, handlers, doc)`` and the method shortcuts
  ``get post put delete patch options head all use``
- ``append_subtree(path, doc)`` / ``route(path, doc)`` return the new child
- ``attach(layer, path, doc)`` / ``by(...)`` share an existing layer by
  reference: later additions to it are visible through every attachment.

Flattening
----------
``routes`` walks the entries once, carrying the handlers and doc fragments of
the middleware seen so far in this layer:

- middleware: its handlers are appended to the inherited chain; the fragments
  carried by its handlers and then its own fragment join the inherited docs.
- route: one ``Route`` with ``inherited + own`` handlers and
  ``join_docs(inherited..., own handler docs..., entry.doc)``.
- subtree: the child is flattened on its own (fresh accumulators) and every
  child route gets ``inherited + edge`` handlers prepended and
  ``join_docs(inherited..., edge handler docs..., entry.doc, child route doc)``.

Routes appear in declaration order, subtrees expanded in place depth-first.
Nothing is cached: every access recomputes from the current state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from genro_layers.exceptions import NotFound

from .entries import METHODS, Entry, MiddlewareEntry, Route, RouteEntry, SubtreeEntry
from .executor import execute_chain
from .merge import handler_docs, join_docs
from .paths import join_path

__all__ = ["Layer"]

logger = logging.getLogger("genro_layers")


def _as_handlers(handlers: Callable | Iterable[Callable] | None) -> list[Callable]:
    if handlers is None:
        return []
    if callable(handlers):
        return [handlers]
    result = list(handlers)
    for handler in result:
        if not callable(handler):
            raise TypeError(f"Handler must be callable, got {type(handler).__name__}")
    return result


class Layer:
    """Ordered container of route/middleware/subtree entries."""

    __slots__ = ("prefix", "doc", "_entries")

    def __init__(self, prefix: str = "", doc: dict[str, Any] | None = None) -> None:
        self.prefix = join_path(prefix)
        self.doc: dict[str, Any] = join_docs(doc)
        self._entries: list[Entry] = []

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Layer(prefix={self.prefix!r}, entries={len(self._entries)})"

    @property
    def entries(self) -> tuple[Entry, ...]:
        """Snapshot of the entries in declaration order."""
        return tuple(self._entries)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def append_middleware(
        self, handlers: Callable | Iterable[Callable], doc: dict[str, Any] | None = None
    ) -> MiddlewareEntry:
        entry = MiddlewareEntry(_as_handlers(handlers), join_docs(self.doc, doc))
        self._entries.append(entry)
        return entry

    def append_route(
        self,
        method: str,
        path: str,
        handlers: Callable | Iterable[Callable],
        doc: dict[str, Any] | None = None,
    ) -> RouteEntry:
        method = method.lower()
        if method not in METHODS:
            raise ValueError(f"Unknown method {method!r}. Available methods: {', '.join(METHODS)}")
        entry = RouteEntry(method, path or "", _as_handlers(handlers), join_docs(self.doc, doc))
        self._entries.append(entry)
        return entry

    def append_subtree(self, path: str = "", doc: dict[str, Any] | None = None) -> Layer:
        """Create a child layer under ``path`` and return it for further building."""
        child = Layer(join_path(self.prefix, path), join_docs(self.doc, doc))
        self._entries.append(SubtreeEntry(child, path=path or ""))
        return child

    def attach(
        self,
        layer: Layer,
        path: str = "",
        doc: dict[str, Any] | None = None,
        handlers: Callable | Iterable[Callable] | None = None,
    ) -> SubtreeEntry:
        """Share an already built layer under ``path``.

        The layer is not copied. Attaching a layer that contains this one
        would make the tree cyclic and raises ``ValueError``.
        """
        if not isinstance(layer, Layer):
            raise TypeError(f"attach() requires a Layer, got {type(layer).__name__}")
        if layer is self or layer._reaches(self):
            raise ValueError("attach() rejected: layer would contain itself")
        entry = SubtreeEntry(
            layer,
            path=path or "",
            handlers=_as_handlers(handlers),
            doc=join_docs(self.doc, doc),
            shared=True,
        )
        self._entries.append(entry)
        return entry

    def _reaches(self, target: Layer) -> bool:
        for entry in self._entries:
            if isinstance(entry, SubtreeEntry):
                if entry.layer is target or entry.layer._reaches(target):
                    return True
        return False

    # Fluent shortcuts -------------------------------------------------
    def middleware(self, handlers: Callable | Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_middleware(handlers, doc)
        return self

    def route(self, path: str = "", doc: dict[str, Any] | None = None) -> Layer:
        return self.append_subtree(path, doc)

    def by(self, layer: Layer, path: str = "", doc: dict[str, Any] | None = None) -> Layer:
        self.attach(layer, path, doc)
        return self

    def get(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("get", path, handlers, doc)
        return self

    def post(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("post", path, handlers, doc)
        return self

    def put(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("put", path, handlers, doc)
        return self

    def delete(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("delete", path, handlers, doc)
        return self

    def patch(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("patch", path, handlers, doc)
        return self

    def options(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("options", path, handlers, doc)
        return self

    def head(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("head", path, handlers, doc)
        return self

    def all(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("all", path, handlers, doc)
        return self

    def use(self, path: str, handlers: Iterable[Callable], doc: dict[str, Any] | None = None) -> Layer:
        self.append_route("use", path, handlers, doc)
        return self

    # ------------------------------------------------------------------
    # Flattening
    # ------------------------------------------------------------------
    @property
    def routes(self) -> list[Route]:
        """Flatten the tree into routes, indexed by emission order."""
        routes = self._flatten()
        for index, route in enumerate(routes):
            route.index = index
        logger.debug("Layer %r flattened into %d routes", self.prefix, len(routes))
        return routes

    def _flatten(self) -> list[Route]:
        routes: list[Route] = []
        inherited_handlers: list[Callable] = []
        inherited_docs: list[dict[str, Any]] = []

        for entry in self._entries:
            if isinstance(entry, MiddlewareEntry):
                inherited_handlers.extend(entry.handlers)
                inherited_docs.extend(handler_docs(*entry.handlers))
                inherited_docs.append(entry.doc)
            elif isinstance(entry, RouteEntry):
                routes.append(
                    Route(
                        index=len(routes),
                        path=join_path(self.prefix, entry.path),
                        method=entry.method,
                        handlers=[*inherited_handlers, *entry.handlers],
                        doc=join_docs(*inherited_docs, *handler_docs(*entry.handlers), entry.doc),
                        entry=entry,
                    )
                )
            else:
                chain = [*inherited_handlers, *entry.handlers]
                edge_docs = [*inherited_docs, *handler_docs(*entry.handlers), entry.doc]
                base = join_path(self.prefix, entry.path) if entry.shared else ""
                for child in entry.layer._flatten():
                    routes.append(
                        Route(
                            index=len(routes),
                            path=join_path(base, child.path),
                            method=child.method,
                            handlers=[*chain, *child.handlers],
                            doc=join_docs(*edge_docs, child.doc),
                            entry=child.entry,
                        )
                    )
        return routes

    def amend_doc(self, index: int, doc: dict[str, Any]) -> Route:
        """Merge ``doc`` into the entry that emitted route ``index``.

        Returns:
            The route recomputed with the amended fragment.

        Raises:
            NotFound: if no route is emitted at ``index``.
        """
        routes = self._flatten()
        if not 0 <= index < len(routes):
            raise NotFound(f"{self.prefix or '/'}#{index}")
        entry = routes[index].entry
        entry.doc = join_docs(entry.doc, doc)
        return self.routes[index]

    # ------------------------------------------------------------------
    # Introspection and out-of-band execution
    # ------------------------------------------------------------------
    @property
    def stack(self) -> list[dict[str, Any]]:
        """Describe the entries as plain dicts, subtrees nested under ``stack``."""
        result: list[dict[str, Any]] = []
        for entry in self._entries:
            if isinstance(entry, MiddlewareEntry):
                result.append(
                    {
                        "type": entry.kind,
                        "method": "use",
                        "path": self.prefix,
                        "handlers": list(entry.handlers),
                        "doc": entry.doc,
                    }
                )
            elif isinstance(entry, RouteEntry):
                result.append(
                    {
                        "type": entry.kind,
                        "method": entry.method,
                        "path": join_path(self.prefix, entry.path),
                        "handlers": list(entry.handlers),
                        "doc": entry.doc,
                    }
                )
            else:
                result.append(
                    {
                        "type": entry.kind,
                        "method": "use",
                        "path": entry.path,
                        "shared": entry.shared,
                        "handlers": list(entry.handlers),
                        "doc": entry.doc,
                        "stack": entry.layer.stack,
                    }
                )
        return result

    @property
    def middleware_handlers(self) -> list[Callable]:
        """Handlers of this layer's own middleware entries, in order."""
        return [
            handler
            for entry in self._entries
            if isinstance(entry, MiddlewareEntry)
            for handler in entry.handlers
        ]

    async def execute_middlewares(self, request: Any, response: Any, next: Callable | None = None) -> None:  # noqa: A002
        """Drain this layer's middleware one by one, then call ``next``.

        Meant for tests and tooling: see ``execute_chain`` for the exact
        (simplified) continuation semantics.
        """
        await execute_chain(self.middleware_handlers, request, response, next)
