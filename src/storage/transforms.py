# src/storage/transforms.py - v1
"""Server-side value transforms understood by the in-memory store.

They play the role Firestore's DELETE_FIELD, SERVER_TIMESTAMP, Increment,
ArrayUnion and ArrayRemove play for the real driver: the cache cannot know
their result without asking the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

_MISSING = object()


class Transform:
    """Base class for values resolved by the store at write time."""

    def resolve(self, current: Any) -> Any:
        raise NotImplementedError


class _DeleteField(Transform):
    def resolve(self, current: Any) -> Any:
        return _MISSING

    def __repr__(self) -> str:
        return "DELETE_FIELD"


class _ServerTimestamp(Transform):
    def resolve(self, current: Any) -> Any:
        return datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


DELETE_FIELD = _DeleteField()
SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Increment(Transform):
    value: int | float

    def resolve(self, current: Any) -> Any:
        if isinstance(current, (int, float)) and not isinstance(current, bool):
            return current + self.value
        return self.value


@dataclass(frozen=True)
class ArrayUnion(Transform):
    values: tuple[Any, ...]

    def __init__(self, values: list[Any] | tuple[Any, ...]) -> None:
        object.__setattr__(self, "values", tuple(values))

    def resolve(self, current: Any) -> Any:
        result = list(current) if isinstance(current, list) else []
        for value in self.values:
            if value not in result:
                result.append(value)
        return result


@dataclass(frozen=True)
class ArrayRemove(Transform):
    values: tuple[Any, ...]

    def __init__(self, values: list[Any] | tuple[Any, ...]) -> None:
        object.__setattr__(self, "values", tuple(values))

    def resolve(self, current: Any) -> Any:
        if not isinstance(current, list):
            return []
        return [v for v in current if v not in self.values]


def is_transform(value: Any) -> bool:
    return isinstance(value, Transform)


def apply_field(doc: dict[str, Any], key: str, value: Any) -> None:
    """Assign value to doc[key], resolving a transform against the old value."""
    if is_transform(value):
        value = value.resolve(doc.get(key))
        if value is _MISSING:
            doc.pop(key, None)
            return
    doc[key] = value


def apply_field_path(doc: dict[str, Any], field_path: str, value: Any) -> None:
    """Assign to a dotted field path ("address.city"), creating maps on the way."""
    *parents, leaf = field_path.split(".")
    node = doc
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    apply_field(node, leaf, value)


def merge_fields(doc: dict[str, Any], fields: dict[str, Any]) -> None:
    """Merge-write semantics: nested maps merge, everything else overwrites."""
    for key, value in fields.items():
        if isinstance(value, dict):
            child = doc.get(key)
            if not isinstance(child, dict):
                child = {}
                doc[key] = child
            merge_fields(child, value)
        else:
            apply_field(doc, key, value)
