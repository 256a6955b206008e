"""Fluent router surface for Genro Layers.

``Router`` wraps a ``Layer`` with the declaration API applications use.
Middleware and handlers registered through it are wrapped with ``guard`` so
that a middleware instance runs at most once per request however many paths
reach it.

Declaring routes
----------------
``get/post/put/delete/patch/options/head/all/use(path, doc=None, **doc_kw)``
return a ``RequestHandler``. Chain route-level middleware on it and finish
with ``handler(...)``, which appends the route entry and returns a
``RouteHandle``::

    router = Router()
    router.middleware(authenticate, {"security": [{"BearerAuth": []}]})

    (
        router.get("/users/:id", doc_summary="Get a user")
        .middleware(load_user)
        .handler(show_user)
        .doc({"tags": ["users"]})
    )

Keyword arguments prefixed with ``doc_`` become top-level keys of the route
fragment (``doc_summary="x"`` is ``{"summary": "x"}``).

Composition
-----------
- ``route(path, doc)`` returns a child ``Router`` on a new sub-layer.
- ``by(other, path, doc)`` attaches another router's layer by reference.
- ``middleware(component)`` accepts a reusable ``Middleware`` component and
  re-inserts its guarded handlers unchanged.

Inspection
----------
``routes`` flattens the tree, ``amend_doc(index, doc)`` patches the fragment
of an emitted route, ``execute_middlewares`` drains this router's own
middleware for tests, ``openapi()`` assembles the API definition.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from genro_toolbox import dictExtract
from genro_toolbox.typeutils import safe_is_instance

from genro_layers.core.entries import RouteEntry
from genro_layers.core.guard import guard
from genro_layers.core.layer import Layer
from genro_layers.core.merge import join_docs, join_object
from genro_layers.openapi import OpenAPIBuilder, OpenAPIOptions, build_options

__all__ = ["RequestHandler", "RouteHandle", "Router"]

_MIDDLEWARE_COMPONENT = "genro_layers.components.RequestMiddleware"
_HANDLER_COMPONENT = "genro_layers.components.Handler"


def _fragment(operation: dict[str, Any] | None, components: dict[str, Any] | None = None) -> dict[str, Any]:
    """Split ``components`` out of ``operation`` and merge the explicit ones in."""
    operation = dict(operation or {})
    merged = join_object(operation.pop("components", None) or {}, components or {})
    if merged:
        operation["components"] = merged
    return operation


def _doc_kwargs(doc: dict[str, Any] | None, kwargs: dict[str, Any]) -> dict[str, Any]:
    extracted = dictExtract(kwargs, "doc_", slice_prefix=True, pop=True)
    if kwargs:
        raise TypeError(f"Unexpected arguments: {', '.join(sorted(kwargs))}")
    return join_docs(doc, dict(extracted))


class RouteHandle:
    """Handle on a declared route, used to amend its documentation.

    Attributes:
        method: HTTP method tag.
        path: Path relative to the declaring router.
        middlewares: Full handler chain of the entry (terminal handler last).
        handler: The terminal handler.
    """

    __slots__ = ("_entry",)

    def __init__(self, entry: RouteEntry) -> None:
        self._entry = entry

    @property
    def method(self) -> str:
        return self._entry.method

    @property
    def path(self) -> str:
        return self._entry.path

    @property
    def middlewares(self) -> list[Callable]:
        return list(self._entry.handlers)

    @property
    def handler(self) -> Callable | None:
        return self._entry.handlers[-1] if self._entry.handlers else None

    @property
    def fragment(self) -> dict[str, Any]:
        """Current documentation fragment of the entry."""
        return self._entry.doc

    def doc(self, operation: dict[str, Any], components: dict[str, Any] | None = None) -> RouteHandle:
        """Merge ``operation`` (and ``components``) into the route fragment."""
        self._entry.doc = join_docs(self._entry.doc, _fragment(operation, components))
        return self


class RequestHandler:
    """Builder returned by the method shortcuts of ``Router``."""

    __slots__ = ("router", "method", "path", "fragment", "middlewares")

    def __init__(self, router: Router, method: str, path: str, doc: dict[str, Any] | None = None) -> None:
        self.router = router
        self.method = method
        self.path = path
        self.fragment: dict[str, Any] = join_docs(doc)
        self.middlewares: list[Callable] = []

    def middleware(self, callback: Any, doc: dict[str, Any] | None = None) -> RequestHandler:
        """Add route-level middleware (a callable or a ``Middleware`` component)."""
        if safe_is_instance(callback, _MIDDLEWARE_COMPONENT):
            self.middlewares.extend(callback.handlers)
        elif callable(callback):
            self.middlewares.append(guard(callback))
        else:
            raise TypeError(f"Unsupported middleware: {callback!r}")
        if doc:
            self.fragment = join_docs(self.fragment, doc)
        return self

    def handler(self, callback: Any, doc: dict[str, Any] | None = None) -> RouteHandle:
        """Set the terminal handler and register the route entry."""
        if safe_is_instance(callback, _HANDLER_COMPONENT):
            self.middlewares.extend(callback.handlers)
        elif callable(callback):
            self.middlewares.append(guard(callback))
        else:
            raise TypeError(f"Unsupported handler: {callback!r}")
        entry = self.router.layer.append_route(
            self.method, self.path, list(self.middlewares), join_docs(self.fragment, doc)
        )
        return RouteHandle(entry)


class Router:
    """Declarative router over a ``Layer`` tree."""

    __slots__ = ("layer", "_openapi")

    def __init__(self, route_path: str = "", layer: Layer | None = None, *, doc: dict[str, Any] | None = None) -> None:
        if layer is None:
            layer = Layer(route_path, doc)
        elif not safe_is_instance(layer, "genro_layers.core.layer.Layer"):
            raise TypeError(f"Router layer must be a Layer, got {type(layer).__name__}")
        self.layer = layer
        self._openapi = OpenAPIOptions()

    def __repr__(self) -> str:
        return f"Router(path={self.path!r})"

    @property
    def path(self) -> str:
        return self.layer.prefix

    # ------------------------------------------------------------------
    # Documentation
    # ------------------------------------------------------------------
    def doc(self, operation: dict[str, Any], components: dict[str, Any] | None = None) -> Router:
        """Replace the base fragment inherited by entries declared from now on."""
        self.layer.doc = _fragment(operation, components)
        return self

    def amend_doc(self, index: int, operation: dict[str, Any], components: dict[str, Any] | None = None) -> Router:
        """Merge a fragment into the entry that emitted route ``index``."""
        self.layer.amend_doc(index, _fragment(operation, components))
        return self

    # ------------------------------------------------------------------
    # Middleware and handlers
    # ------------------------------------------------------------------
    def middleware(self, callback: Any, doc: dict[str, Any] | None = None) -> Router:
        """Apply middleware to every route declared after this call."""
        if safe_is_instance(callback, _MIDDLEWARE_COMPONENT):
            for handlers in callback.chains:
                self.layer.append_middleware(handlers, doc)
        elif callable(callback):
            self.layer.append_middleware([guard(callback)], doc)
        else:
            raise TypeError(f"Unsupported middleware: {callback!r}")
        return self

    def handler(self, callback: Any, doc: dict[str, Any] | None = None) -> Any:
        """Build a reusable ``Handler`` component from ``callback``."""
        from genro_layers.components import Handler

        return Handler(callback, doc=doc)

    async def execute_middlewares(self, request: Any, response: Any, next: Callable | None = None) -> None:  # noqa: A002
        """Drain the middleware applied directly to this router."""
        await self.layer.execute_middlewares(request, response, next)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, doc: dict[str, Any] | None, kwargs: dict[str, Any]) -> RequestHandler:
        return RequestHandler(self, method, path, _doc_kwargs(doc, kwargs))

    def get(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("get", path, doc, kwargs)

    def post(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("post", path, doc, kwargs)

    def put(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("put", path, doc, kwargs)

    def delete(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("delete", path, doc, kwargs)

    def patch(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("patch", path, doc, kwargs)

    def options(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("options", path, doc, kwargs)

    def head(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("head", path, doc, kwargs)

    def all(self, path: str, doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("all", path, doc, kwargs)

    def use(self, path: str = "", doc: dict[str, Any] | None = None, **kwargs: Any) -> RequestHandler:
        return self._request("use", path, doc, kwargs)

    def route(self, path: str = "", doc: dict[str, Any] | None = None) -> Router:
        """Return a child router mounted under ``path``."""
        return Router(layer=self.layer.append_subtree(path, doc))

    def by(self, router: Router | Layer, path: str = "", doc: dict[str, Any] | None = None) -> Router:
        """Attach an existing router (or layer) by reference."""
        if isinstance(router, Router):
            layer = router.layer
        elif safe_is_instance(router, "genro_layers.core.layer.Layer"):
            layer = router
        else:
            raise TypeError(f"by() requires a Router or Layer, got {type(router).__name__}")
        self.layer.attach(layer, path, doc)
        return self

    @property
    def routes(self) -> list[Any]:
        """Flattened routes of the whole tree."""
        return self.layer.routes

    # ------------------------------------------------------------------
    # OpenAPI
    # ------------------------------------------------------------------
    def define_openapi(
        self,
        openapi: str = "3.0.0",
        info: dict[str, Any] | None = None,
        servers: list[dict[str, Any]] | None = None,
        path: str = "/doc",
        paths: dict[str, Any] | None = None,
        components: dict[str, Any] | None = None,
        default_responses: dict[Any, Any] | None = None,
    ) -> Router:
        """Configure the document produced by ``openapi()``.

        Args:
            openapi: OpenAPI version string.
            info: The ``info`` object (title, version, ...).
            servers: The ``servers`` list.
            path: Base path where a transport would serve the documentation.
            paths: Extra paths merged beneath the generated ones.
            components: Extra components merged beneath the generated ones.
            default_responses: Responses merged beneath every operation.

        Raises:
            pydantic.ValidationError: if an argument has the wrong shape.
        """
        self._openapi = build_options(
            openapi=openapi,
            info=info,
            servers=servers,
            path=path,
            paths=paths,
            components=components,
            default_responses=default_responses,
        )
        return self

    @property
    def openapi_options(self) -> OpenAPIOptions:
        return self._openapi

    def openapi(self) -> dict[str, Any]:
        """Assemble the OpenAPI definition of every route in the tree."""
        return OpenAPIBuilder.definition(self.routes, self._openapi)
