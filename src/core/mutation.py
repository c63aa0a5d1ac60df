# src/core/mutation.py - v1
"""Detect write payloads whose stored result cannot be computed locally.

Two things make a payload opaque to the cache:

* a dotted key ("address.city"), which the store resolves as a nested
  field path rather than a literal key;
* a store sentinel (delete-field, server timestamp, increment, array
  union/remove) whose effect is only known server-side.

When a payload is opaque the cache invalidates instead of guessing.

Lists are not inspected: a sentinel inside a list element goes unnoticed.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

SentinelPredicate = Callable[[Any], bool]

DEFAULT_MAX_DEPTH = 32


def _never_sentinel(value: Any) -> bool:
    return False


def contains_opaque_mutation(
    data: Any,
    is_sentinel: SentinelPredicate | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """Return True if applying ``data`` locally could diverge from the store.

    Args:
        data: Write payload (usually a mapping).
        is_sentinel: Backing-store predicate for server-side values.
        max_depth: Nesting limit; deeper payloads count as opaque.
    """
    predicate = is_sentinel or _never_sentinel
    return _walk(data, predicate, 0, max_depth)


def _walk(value: Any, is_sentinel: SentinelPredicate, depth: int, max_depth: int) -> bool:
    if is_sentinel(value):
        return True
    if not isinstance(value, Mapping):
        return False
    if depth >= max_depth:
        return True

    for key, child in value.items():
        if isinstance(key, str) and "." in key:
            return True
        if _walk(child, is_sentinel, depth + 1, max_depth):
            return True
    return False
