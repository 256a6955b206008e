# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Path helpers for layer prefixes and route paths.

``join_path`` is the only way prefixes are composed: every segment is trimmed
of leading/trailing slashes, empty segments are dropped and the rest is joined
with a single ``/``. The result is either ``""`` or starts with ``/``.

``normalize_path`` converts colon placeholders (``/users/:id``) into the
``{id}`` form used by OpenAPI documents.
"""

from __future__ import annotations

import re

__all__ = ["join_path", "normalize_path"]

_SLASHES = re.compile(r"/+")
_COLON_PARAM = re.compile(r"^:(\S+)$")


def join_path(*paths: str | None) -> str:
    """Join path segments into a single ``/``-prefixed path.

    Example::

        >>> join_path("/a/", "//b", "", "c/")
        '/a/b/c'
        >>> join_path("", "/")
        ''
    """
    parts: list[str] = []
    for path in paths:
        if not path:
            continue
        for chunk in _SLASHES.split(path.strip()):
            if chunk.strip():
                parts.append(chunk)
    if not parts:
        return ""
    return "/" + "/".join(parts)


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and turn ``:param`` segments into ``{param}``."""
    segments = _SLASHES.sub("/", path).split("/")
    return "/".join(_COLON_PARAM.sub(r"{\1}", segment) for segment in segments)

