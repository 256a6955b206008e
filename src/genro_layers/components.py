"""Reusable middleware and handler components.

A component captures guarded callables in a private ``Router`` so the very
same instances can be inserted into several routers or routes. Because the
instances are shared, the execute-once guard recognises them wherever they
show up in a resolved chain.

``RequestMiddleware``
    A chain of middleware. ``middleware(cb)`` appends to the chain.
``Middleware``
    Adds ``handler(cb)`` to close the chain into a reusable ``Handler``.
``MiddlewareRouter``
    Adds ``route(path)`` and ``by(router)`` so routes can be declared
    directly behind the captured middleware.
``Handler``
    Middleware plus a terminal handler, passed to ``RequestHandler.handler``.

Factories
---------
``create()``, ``route(path)`` and ``middleware(func, doc)`` mirror the
module-level entry points applications start from.

Example::

    auth = Middleware(authenticate, doc={"security": [{"BearerAuth": []}]})

    api = create()
    api.middleware(auth)
    admin = api.route("/admin")
    admin.middleware(auth)  # same instance: runs once per request
    admin.get("/stats").handler(stats)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from genro_layers.core.entries import MiddlewareEntry
from genro_layers.core.guard import guard
from genro_layers.core.merge import DOC_ATTR, join_docs
from genro_layers.router import Router

__all__ = [
    "Handler",
    "Middleware",
    "MiddlewareRouter",
    "RequestMiddleware",
    "create",
    "middleware",
    "route",
]


def _middleware_chains(router: Router) -> list[list[Callable]]:
    return [list(entry.handlers) for entry in router.layer if isinstance(entry, MiddlewareEntry)]


class RequestMiddleware:
    """Chain of guarded middleware captured for reuse."""

    __slots__ = ("router",)

    def __init__(
        self,
        callback: Any = None,
        router: Router | None = None,
        doc: dict[str, Any] | None = None,
    ) -> None:
        self.router = router if router is not None else Router()
        if callback is None:
            return
        if isinstance(callback, RequestMiddleware):
            for handlers in callback.chains:
                self.router.layer.append_middleware(handlers)
        elif callable(callback):
            self.router.layer.append_middleware([guard(callback, doc)])
        else:
            raise TypeError(f"Unsupported middleware: {callback!r}")

    @property
    def chains(self) -> list[list[Callable]]:
        """Handler lists of the captured middleware entries, in order."""
        return _middleware_chains(self.router)

    @property
    def handlers(self) -> list[Callable]:
        """All captured handlers flattened in order."""
        return [handler for chain in self.chains for handler in chain]

    def middleware(self, callback: Any, doc: dict[str, Any] | None = None) -> RequestMiddleware:
        return type(self)(callback, self.router, doc)


class Middleware(RequestMiddleware):
    """Middleware chain that can be closed with a terminal handler."""

    __slots__ = ()

    def handler(self, callback: Any, doc: dict[str, Any] | None = None) -> Handler:
        return Handler(callback, self.router, doc)


class MiddlewareRouter(RequestMiddleware):
    """Middleware chain that routes can be declared behind."""

    __slots__ = ()

    def route(self, path: str = "") -> Router:
        return self.router.route(path)

    def by(self, router: Router) -> MiddlewareRouter:
        self.router.by(router)
        return self


class Handler:
    """Reusable handler: captured middleware followed by a terminal handler."""

    __slots__ = ("router",)

    def __init__(
        self,
        callback: Any = None,
        router: Router | None = None,
        doc: dict[str, Any] | None = None,
    ) -> None:
        self.router = router if router is not None else Router()
        if callback is None:
            return
        if isinstance(callback, Handler):
            for handlers in _middleware_chains(callback.router):
                self.router.layer.append_middleware(handlers)
        elif callable(callback):
            self.router.layer.append_middleware([guard(callback, doc)])
        else:
            raise TypeError(f"Unsupported handler: {callback!r}")

    @property
    def handlers(self) -> list[Callable]:
        return [handler for chain in _middleware_chains(self.router) for handler in chain]


def create(route_path: str = "", doc: dict[str, Any] | None = None) -> Router:
    """Create a root router."""
    return Router(route_path, doc=doc)


def route(path: str) -> Router:
    """Create a standalone router mounted at ``path``, ready for ``by()``."""
    return Router().route(path)


def middleware(func: Callable | None = None, doc: dict[str, Any] | None = None, **fragment: Any) -> Any:
    """Attach a documentation fragment to a middleware callable.

    Usable directly or as a decorator::

        auth = middleware(authenticate, {"security": [{"BearerAuth": []}]})

        @middleware(tags=["audit"])
        def audit(request, response, next):
            next()

    The fragment is merged into the flattened doc of every route the
    middleware ends up in.
    """

    def decorator(target: Callable) -> Callable:
        current = getattr(target, DOC_ATTR, None)
        setattr(target, DOC_ATTR, join_docs(current if isinstance(current, dict) else None, doc, fragment))  # noqa: B010
        return target

    if func is None:
        return decorator
    return decorator(func)
