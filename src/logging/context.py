# src/logging/context.py - v2
"""Contextual logging: attach the cache operation and path to log records.

Values live in contextvars, so each asyncio task sees its own operation.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "path", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    operation: str | None = None
    path: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(operation=_operation.get(), path=_path.get())


def set_operation_context(operation: str, path: str | None = None) -> None:
    """Set operation-level context (called at the start of a cache operation)."""
    _operation.set(operation)
    _path.set(path)


@contextmanager
def operation_context(operation: str, path: str | None = None) -> Iterator[None]:
    """Scope the operation context to a block, restoring the previous one."""
    op_token = _operation.set(operation)
    path_token = _path.set(path)
    try:
        yield
    finally:
        _path.reset(path_token)
        _operation.reset(op_token)


def clear_context() -> None:
    """Reset all context variables."""
    _operation.set(None)
    _path.set(None)
