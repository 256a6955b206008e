"""Genro Layers - Declarative route trees with inheritable middleware.

Public API surface for building a tree of endpoints and reusable middleware
chains, flattening it into the route table a dispatcher consumes, and merging
the documentation fragments scattered across the tree into one object per
endpoint.

Public exports:
    - ``Router``: Fluent declaration API over a ``Layer`` tree
    - ``Layer``: Route tree node with flattening (``routes``)
    - ``Route``: Flattened endpoint (path, method, handlers, doc)
    - ``Middleware``/``Handler``: Reusable guarded components
    - ``guard``/``execute_once``: Execute-once middleware guard
    - ``execute_chain``: Sequential out-of-band chain execution
    - ``join_object``/``join_docs``: Documentation merge
    - ``Doc``: Fluent documentation fragment builder

Example::

    from genro_layers import create

    app = create()
    app.get("/users", doc_summary="list").handler(list_users)
    admin = app.route("/admin", {"tags": ["ops"]})
    admin.get("/stats").handler(stats)

    [(r.method, r.path) for r in app.routes]
    # [('get', '/users'), ('get', '/admin/stats')]
"""

__version__ = "0.4.0"

from .components import Handler, Middleware, MiddlewareRouter, RequestMiddleware, create, middleware, route
from .core import (
    UNSET,
    GuardedHandler,
    Layer,
    Opaque,
    Route,
    execute_chain,
    execute_once,
    guard,
    join_docs,
    join_object,
    join_path,
    normalize_path,
)
from .doc import Doc
from .exceptions import NotFound
from .openapi import OpenAPIBuilder, OpenAPIOptions
from .router import RequestHandler, RouteHandle, Router

__all__ = [
    "UNSET",
    "Doc",
    "GuardedHandler",
    "Handler",
    "Layer",
    "Middleware",
    "MiddlewareRouter",
    "NotFound",
    "OpenAPIBuilder",
    "OpenAPIOptions",
    "Opaque",
    "RequestHandler",
    "RequestMiddleware",
    "Route",
    "RouteHandle",
    "Router",
    "create",
    "execute_chain",
    "execute_once",
    "guard",
    "join_docs",
    "join_object",
    "join_path",
    "middleware",
    "normalize_path",
    "route",
]
