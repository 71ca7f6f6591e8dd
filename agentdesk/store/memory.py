"""In-memory document store, used for tests and local development."""

import asyncio
import copy
import logging
from typing import Any

from agentdesk.store.base import DocumentStore, deep_merge

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Stores documents in a nested dict guarded by an asyncio lock."""

    def __init__(self) -> None:
        self._documents: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        document = self._documents.get((collection, doc_id))
        return copy.deepcopy(document) if document is not None else None

    async def merge(
        self, collection: str, doc_id: str, partial: dict[str, Any]
    ) -> dict[str, Any]:
        async with self._lock:
            existing = self._documents.get((collection, doc_id), {})
            merged = deep_merge(existing, partial)
            self._documents[(collection, doc_id)] = merged

        logger.debug(f"Merged {sorted(partial)} into {collection}/{doc_id}")
        return copy.deepcopy(merged)
