# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Execute-once guard for middleware instances.

The same middleware can be reached through several tree paths: a layer shared
with ``attach`` in two places, or a reusable ``Middleware`` component inserted
into several routers. ``GuardedHandler`` makes sure the wrapped callable runs
at most once per request.

Identity
--------
``handler_id(func)`` assigns a uuid the first time a callable is seen and
caches it on the callable (``_layer_id``), so wrapping the same function twice
yields two guards with the same identity. Structurally identical closures
are distinct callables and get distinct ids. Bound methods are keyed on
their instance and function, so ``guard(svc.auth)`` is stable across lookups.

Per-request state
-----------------
The set of executed ids lives on the request itself: under the
``__executed_middlewares__`` key for mapping requests, as an attribute of the
same name otherwise. It is created lazily by the first guard that runs.

Opting out
----------
While the wrapped callable runs, ``execute_once(flag)`` toggles its id in the
request set: ``execute_once(False)`` lets it run again later in the same
request, ``execute_once()`` marks it executed again. Outside a guarded call
it does nothing.

Example::

    from genro_layers import execute_once, guard

    def audit(request, response, next):
        execute_once(False)  # run every time it is reached
        request.audit.append("seen")
        next()

    audit_mw = guard(audit)
"""

from __future__ import annotations

import inspect
import logging
import uuid
import weakref
from collections.abc import Callable, MutableMapping
from contextvars import ContextVar
from typing import Any

from .executor import response_finished
from .merge import handler_doc, join_docs

__all__ = ["GuardedHandler", "execute_once", "executed_ids", "guard", "handler_id"]

logger = logging.getLogger("genro_layers")

ID_ATTR = "_layer_id"
EXECUTED_KEY = "__executed_middlewares__"

_active: ContextVar[tuple[set[str], str] | None] = ContextVar("genro_layers_active_guard", default=None)
_method_ids: weakref.WeakKeyDictionary[Any, dict[Callable, str]] = weakref.WeakKeyDictionary()


def _method_id(method: Any) -> str:
    owner, func = method.__self__, method.__func__
    try:
        ids = _method_ids.setdefault(owner, {})
    except TypeError:
        logger.debug("Cannot cache identity for %r, each wrap gets a new id", method)
        return uuid.uuid4().hex
    if func not in ids:
        ids[func] = uuid.uuid4().hex
    return ids[func]


def handler_id(func: Callable) -> str:
    """Return the stable identity of ``func``, assigning one if needed.

    Bound methods are identified by ``(instance, function)``: every attribute
    lookup builds a new method object, and none of them accepts attributes.
    """
    if inspect.ismethod(func):
        return _method_id(func)
    existing = getattr(func, ID_ATTR, None)
    if isinstance(existing, str):
        return existing
    ident = uuid.uuid4().hex
    try:
        setattr(func, ID_ATTR, ident)
    except (AttributeError, TypeError):
        logger.debug("Cannot cache identity on %r, each wrap gets a new id", func)
    return ident


def executed_ids(request: Any) -> set[str]:
    """Return (creating it if needed) the executed-id set of ``request``."""
    if isinstance(request, MutableMapping):
        executed = request.get(EXECUTED_KEY)
        if not isinstance(executed, set):
            executed = set()
            request[EXECUTED_KEY] = executed
        return executed
    executed = getattr(request, EXECUTED_KEY, None)
    if not isinstance(executed, set):
        executed = set()
        setattr(request, EXECUTED_KEY, executed)
    return executed


def execute_once(flag: bool = True) -> None:
    """Mark (or unmark) the running middleware as executed for this request."""
    active = _active.get()
    if active is None:
        return
    executed, ident = active
    if flag:
        executed.add(ident)
    else:
        executed.discard(ident)


class GuardedHandler:
    """Callable wrapper running ``func`` at most once per request.

    Attributes:
        func: The wrapped ``func(request, response, next)``.
        id: Identity shared by every guard of the same callable.
        doc: Documentation fragment carried by this handler.
    """

    __slots__ = ("func", "id", "doc", "_is_async")

    def __init__(self, func: Callable, doc: dict[str, Any] | None = None) -> None:
        if not callable(func):
            raise TypeError(f"Middleware must be callable, got {type(func).__name__}")
        self.func = func
        self.id = handler_id(func)
        self.doc: dict[str, Any] = join_docs(handler_doc(func), doc)
        self._is_async = inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
            getattr(func, "__call__", None)
        )

    @property
    def __name__(self) -> str:
        return getattr(self.func, "__name__", type(self.func).__name__)

    @property
    def __wrapped__(self) -> Callable:
        return self.func

    def __repr__(self) -> str:
        return f"GuardedHandler({self.__name__}, id={self.id[:8]})"

    def __call__(self, request: Any, response: Any, next: Callable) -> Any:  # noqa: A002
        if response_finished(response):
            return None
        executed = executed_ids(request)
        if self.id in executed:
            logger.debug("Skipping %s: already executed for this request", self.__name__)
            return next()
        executed.add(self.id)
        if self._is_async:
            return self._run_async(executed, request, response, next)
        token = _active.set((executed, self.id))
        try:
            result = self.func(request, response, next)
        finally:
            _active.reset(token)
        if inspect.isawaitable(result):
            return self._settle(executed, result)
        return result

    async def _run_async(self, executed: set[str], request: Any, response: Any, next: Callable) -> Any:  # noqa: A002
        token = _active.set((executed, self.id))
        try:
            return await self.func(request, response, next)
        finally:
            _active.reset(token)

    async def _settle(self, executed: set[str], pending: Any) -> Any:
        token = _active.set((executed, self.id))
        try:
            return await pending
        finally:
            _active.reset(token)


def guard(func: Callable, doc: dict[str, Any] | None = None) -> GuardedHandler:
    """Wrap ``func`` in a ``GuardedHandler`` (idempotent).

    Passing an existing ``GuardedHandler`` returns it unchanged, with ``doc``
    merged into the fragment it carries.
    """
    if isinstance(func, GuardedHandler):
        if doc:
            func.doc = join_docs(func.doc, doc)
        return func
    return GuardedHandler(func, doc)
