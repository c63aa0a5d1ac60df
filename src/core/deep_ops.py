# src/core/deep_ops.py - v2
"""Structural helpers over document values.

Document values are trees of mappings, lists and scalars. Mappings are the
structure the merge helpers descend into; lists are treated as leaf values
there but compared element by element for equality.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def _merge_one(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        if is_mapping(value):
            if not isinstance(target.get(key), dict):
                target[key] = {}
            _merge_one(target[key], value)
        else:
            target[key] = value


def deep_merge(target: dict[str, Any], *sources: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge each source into target, left to right.

    Nested mappings are merged key by key; scalars and lists overwrite.
    Mutates and returns target. This is the "merge" write mode.
    """
    for source in sources:
        _merge_one(target, source)
    return target


def shallow_assign(
    target: dict[str, Any], *sources: Mapping[str, Any]
) -> dict[str, Any]:
    """Top-level overwrite of target by each source (replace/patch mode)."""
    for source in sources:
        target.update(source)
    return target


def _scalar_equal(a: Any, b: Any) -> bool:
    # True == 1 in Python, but a store keeps booleans and integers apart
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _value_equal(a: Any, b: Any) -> bool:
    if is_mapping(a) or is_mapping(b):
        return is_mapping(a) and is_mapping(b) and structural_equal(a, b)
    if _is_sequence(a) or _is_sequence(b):
        return (
            _is_sequence(a)
            and _is_sequence(b)
            and len(a) == len(b)
            and all(_value_equal(x, y) for x, y in zip(a, b))
        )
    return _scalar_equal(a, b)


def structural_equal(a: Mapping[str, Any] | None, b: Mapping[str, Any] | None) -> bool:
    """True iff both mappings exist and hold structurally equal values.

    Mappings and lists are compared recursively, scalars by equality with
    booleans never equal to numbers.
    """
    if a is None or b is None:
        return False
    if set(a.keys()) != set(b.keys()):
        return False
    return all(_value_equal(val, b[key]) for key, val in a.items())


def omit_keys(obj: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """Shallow copy of obj without the named keys."""
    excluded = set(keys)
    return {k: v for k, v in obj.items() if k not in excluded}
