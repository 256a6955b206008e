# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Deep merge of documentation fragments.

Documentation fragments are nested dicts (OpenAPI operation metadata plus a
``components`` subsection). Every node, entry and handler may contribute one,
and the flattener folds them into a single object per route.

Value kinds
-----------
Each value is classified before merging:

- ``record``: a plain ``dict``. Merged recursively.
- ``list``: a ``list`` or ``tuple``. Concatenated onto the existing list and
  deduplicated by structural equality (``True`` and ``1`` stay distinct),
  first occurrence wins, order preserved.
- ``replace``: ``None``, an ``Opaque`` wrapper, or any instance of a type that
  is neither a plain container nor a scalar. Replaces the existing value
  without recursion.
- ``scalar``: ``str``, ``bytes``, numbers and booleans. Replaces.
- ``missing``: the ``UNSET`` sentinel. The key is left untouched.

A base that is itself not a plain record (and not a list) is returned as is:
overlays are never merged into constructed objects.

Example::

    >>> join_object({"tags": ["a", "b"]}, {"tags": ["b", "c"]})
    {'tags': ['a', 'b', 'c']}
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

__all__ = [
    "UNSET",
    "Opaque",
    "value_kind",
    "join_object",
    "join_docs",
    "handler_doc",
    "handler_docs",
]

DOC_ATTR = "_layer_doc"


class _Unset:
    """Sentinel for keys that must not touch the merged result."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class Opaque:
    """Explicit marker for values that must replace instead of merge.

    Plain dicts are normally merged key by key. Wrap a dict in ``Opaque`` when
    it has to travel through the merge untouched (e.g. a full schema that
    later fragments must replace rather than extend).
    """

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Opaque):
            return bool(self.value == other.value)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Opaque({self.value!r})"


_SCALARS = (str, bytes, int, float, complex, bool)


def value_kind(value: Any) -> str:
    """Classify a fragment value for the merge algorithm.

    Returns one of ``"missing"``, ``"replace"``, ``"list"``, ``"record"``
    or ``"scalar"``.
    """
    if value is UNSET:
        return "missing"
    if value is None or isinstance(value, Opaque):
        return "replace"
    if type(value) is dict:
        return "record"
    if isinstance(value, (list, tuple)):
        return "list"
    if isinstance(value, _SCALARS):
        return "scalar"
    return "replace"


def _dedup(items: Iterable[Any]) -> list[Any]:
    unique: list[Any] = []
    for item in items:
        if not any(_deep_equal(item, seen) for seen in unique):
            unique.append(item)
    return unique


def _deep_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps ``True``/``1`` and ``False``/``0`` apart."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(_deep_equal(value, right[key]) for key, value in left.items())
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(map(_deep_equal, left, right))
    try:
        return bool(left == right)
    except Exception:  # pragma: no cover - exotic __eq__ implementations
        return left is right


def _merge_into(result: dict[str, Any], overlay: dict[str, Any]) -> None:
    for key, value in overlay.items():
        kind = value_kind(value)
        if kind == "missing":
            continue
        if kind == "list":
            existing = result.get(key)
            current = list(existing) if value_kind(existing) == "list" else []
            result[key] = _dedup([*current, *value])
        elif kind == "record":
            existing = result.get(key)
            base = existing if value_kind(existing) == "record" else {}
            result[key] = join_object(base, value)
        else:
            result[key] = value


def join_object(obj: Any, *objs: Any) -> Any:
    """Merge ``objs`` into ``obj`` left to right and return a new object.

    Neither ``obj`` nor any overlay is mutated. Overlays that are empty or not
    plain dicts are skipped. When ``obj`` is a list, list overlays are
    concatenated and deduplicated the same way list values are.

    Args:
        obj: Base fragment.
        *objs: Overlay fragments, later ones take precedence.

    Returns:
        The merged fragment, or ``obj`` itself when it is a constructed
        (non plain) object.
    """
    kind = value_kind(obj)
    if kind == "list":
        merged = list(obj)
        for overlay in objs:
            if value_kind(overlay) == "list":
                merged.extend(overlay)
        return _dedup(merged)
    if kind != "record":
        return obj

    result: dict[str, Any] = {}
    for fragment in (obj, *objs):
        if value_kind(fragment) != "record" or not fragment:
            continue
        _merge_into(result, fragment)
    return result


def join_docs(*docs: dict[str, Any] | None) -> dict[str, Any]:
    """Fold ``join_object`` over ``docs`` starting from an empty fragment.

    ``None`` and empty fragments are dropped first, so they never perturb the
    ordering or the list deduplication of the following merges.
    """
    result: dict[str, Any] = {}
    for doc in docs:
        if not doc:
            continue
        result = join_object(result, doc)
    return result


def handler_doc(handler: Callable) -> dict[str, Any]:
    """Return the fragment carried by ``handler`` (empty dict if none)."""
    doc = getattr(handler, "doc", None)
    if not isinstance(doc, dict):
        doc = getattr(handler, DOC_ATTR, None)
    return doc if isinstance(doc, dict) else {}


def handler_docs(*handlers: Callable) -> list[dict[str, Any]]:
    """Collect the non-empty fragments carried by ``handlers`` in order."""
    return [doc for doc in (handler_doc(h) for h in handlers) if doc]
