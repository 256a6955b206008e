# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Sequential, out-of-band execution of a handler chain.

``execute_chain`` drains a list of ``handler(request, response, next)``
callables without a transport loop driving them. It is a drain-then-continue
utility, not a dispatcher:

- handlers run strictly one after another, each result awaited when it is
  awaitable (sync and async handlers can be mixed);
- before each handler the response is checked and the loop stops once
  ``response.headers_sent`` is true;
- every handler but the last receives a no-op ``next``; the loop advances
  whether or not it was called. Only the last handler gets the caller's
  ``next``. With an empty chain ``next`` is called directly.

Handler exceptions are not caught here.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from typing import Any

__all__ = ["execute_chain", "response_finished"]

logger = logging.getLogger("genro_layers")


def response_finished(response: Any) -> bool:
    """Return True once ``response`` reports its headers as sent."""
    return response is not None and bool(getattr(response, "headers_sent", False))


def _noop(*args: Any, **kwargs: Any) -> None:
    return None


async def _settle(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def execute_chain(
    handlers: Iterable[Callable],
    request: Any,
    response: Any,
    next: Callable | None = None,  # noqa: A002
) -> None:
    """Run ``handlers`` in order for one simulated request.

    Args:
        handlers: Chain to drain.
        request: Request object passed to every handler.
        response: Response object; ``headers_sent`` stops the loop.
        next: Continuation handed to the last handler only.
    """
    chain = list(handlers)
    final = next or _noop
    if not chain:
        await _settle(final())
        return

    last = len(chain) - 1
    for index, handler in enumerate(chain):
        if response_finished(response):
            logger.debug("Response already sent, skipping %d remaining handlers", len(chain) - index)
            return
        await _settle(handler(request, response, final if index == last else _noop))
