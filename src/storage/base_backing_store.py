# src/storage/base_backing_store.py - v1
"""Abstract backing-store interface.

The narrow capability set the document cache needs from a remote
hierarchical store. Paths handed to these methods are already normalised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseBackingStore(ABC):
    """Unified interface for document store backends."""

    @abstractmethod
    async def read_document(self, path: str) -> dict[str, Any] | None:
        """Return the document fields, or None if it does not exist."""

    @abstractmethod
    async def read_collection(self, path: str) -> list[tuple[str, dict[str, Any]]]:
        """Return (id, fields) pairs for every document in the collection."""

    @abstractmethod
    async def write_document(
        self, path: str, fields: dict[str, Any], merge: bool = False
    ) -> None:
        """Replace the document, or merge into it when ``merge`` is set.

        Raises:
            WriteError: If the store rejects the write.
        """

    @abstractmethod
    async def update_document(self, path: str, fields: dict[str, Any]) -> None:
        """Patch fields of an existing document.

        Raises:
            WriteError: If the document is missing or the store rejects it.
        """

    @abstractmethod
    async def add_document(self, collection_path: str, fields: dict[str, Any]) -> str:
        """Create a document with a generated id and return that id.

        Raises:
            WriteError: If the store rejects the write.
        """

    @abstractmethod
    async def delete_document(self, path: str) -> None:
        """Delete a document.

        Raises:
            WriteError: If the store rejects the delete.
        """

    @abstractmethod
    def is_opaque_sentinel(self, value: Any) -> bool:
        """True for values whose stored effect is only known server-side."""

    async def aclose(self) -> None:
        """Release client resources. Default: nothing to release."""
