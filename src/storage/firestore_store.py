# src/storage/firestore_store.py - v1
"""Firestore backing store (FIRECACHE_BACKING_STORE=firestore).

Requires 'google-cloud-firestore' package: pip install google-cloud-firestore.
Uses the async client; every call is a single network round trip.
"""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Any

from firecache.core.errors import WriteError
from firecache.storage.base_backing_store import BaseBackingStore

logger = logging.getLogger(__name__)


class FirestoreBackingStore(BaseBackingStore):
    """Read and write documents through google.cloud.firestore.AsyncClient."""

    def __init__(
        self,
        project: str | None = None,
        database: str | None = None,
        credentials_file: str | Path | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the Firestore store.

        Args:
            project: GCP project id (uses the environment default if not set).
            database: Firestore database id.
            credentials_file: Service account JSON file.
            client: Pre-built AsyncClient (skips client construction).
        """
        try:
            from google.api_core import exceptions as api_exceptions
            from google.cloud import firestore
            from google.cloud.firestore_v1 import transforms
        except ImportError as e:
            raise ImportError(
                "google-cloud-firestore package required: "
                "pip install google-cloud-firestore"
            ) from e

        if client is None:
            kwargs: dict[str, Any] = {}
            if project:
                kwargs["project"] = project
            if database:
                kwargs["database"] = database
            if credentials_file:
                from google.oauth2 import service_account

                kwargs["credentials"] = (
                    service_account.Credentials.from_service_account_file(
                        str(Path(credentials_file).expanduser())
                    )
                )
            client = firestore.AsyncClient(**kwargs)

        self._client = client
        self._api_error: type[Exception] = api_exceptions.GoogleAPICallError
        # DELETE_FIELD and SERVER_TIMESTAMP are Sentinel instances; ArrayUnion,
        # ArrayRemove, Increment, Maximum and Minimum derive from these two.
        self._sentinel_types: tuple[type, ...] = (
            transforms.Sentinel,
            transforms._ValueList,
            transforms._NumericValue,
        )

    async def read_document(self, path: str) -> dict[str, Any] | None:
        snapshot = await self._client.document(path).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    async def read_collection(self, path: str) -> list[tuple[str, dict[str, Any]]]:
        return [
            (snapshot.id, snapshot.to_dict() or {})
            async for snapshot in self._client.collection(path).stream()
        ]

    async def write_document(
        self, path: str, fields: dict[str, Any], merge: bool = False
    ) -> None:
        try:
            await self._client.document(path).set(fields, merge=merge)
        except self._api_error as e:
            raise WriteError(path, "set", e) from e

    async def update_document(self, path: str, fields: dict[str, Any]) -> None:
        try:
            await self._client.document(path).update(fields)
        except self._api_error as e:
            raise WriteError(path, "update", e) from e

    async def add_document(self, collection_path: str, fields: dict[str, Any]) -> str:
        try:
            _, doc_ref = await self._client.collection(collection_path).add(fields)
        except self._api_error as e:
            raise WriteError(collection_path, "add", e) from e
        return doc_ref.id

    async def delete_document(self, path: str) -> None:
        try:
            await self._client.document(path).delete()
        except self._api_error as e:
            raise WriteError(path, "delete", e) from e

    def is_opaque_sentinel(self, value: Any) -> bool:
        return isinstance(value, self._sentinel_types)

    async def aclose(self) -> None:
        """Close the Firestore client transport."""
        result = self._client.close()
        if inspect.isawaitable(result):
            await result
