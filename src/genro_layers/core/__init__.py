"""Core runtime aggregator for Genro Layers.

Exposes the building blocks from a single module:

    - ``Layer``: route tree node with builders and flattening
    - ``Route`` and the entry dataclasses
    - ``join_object``/``join_docs``: documentation merge
    - ``join_path``/``normalize_path``: path helpers
    - ``guard``/``execute_once``: execute-once middleware guard
    - ``execute_chain``: sequential out-of-band executor

Importing this module performs only imports.
"""

from .entries import METHODS, MiddlewareEntry, Route, RouteEntry, SubtreeEntry
from .executor import execute_chain, response_finished
from .guard import GuardedHandler, execute_once, guard, handler_id
from .layer import Layer
from .merge import UNSET, Opaque, handler_docs, join_docs, join_object
from .paths import join_path, normalize_path

__all__ = [
    "METHODS",
    "UNSET",
    "GuardedHandler",
    "Layer",
    "MiddlewareEntry",
    "Opaque",
    "Route",
    "RouteEntry",
    "SubtreeEntry",
    "execute_chain",
    "execute_once",
    "guard",
    "handler_docs",
    "handler_id",
    "join_docs",
    "join_object",
    "join_path",
    "normalize_path",
    "response_finished",
]
