"""Document store interface."""

import copy
from abc import ABC, abstractmethod
from typing import Any


def deep_merge(existing: dict[str, Any], partial: dict[str, Any]) -> dict[str, Any]:
    """Return ``existing`` with ``partial`` merged in.

    Nested dicts are merged key by key; every other value in ``partial``
    replaces the existing one. Neither argument is mutated.
    """
    merged = copy.deepcopy(existing)
    for key, value in partial.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class DocumentStore(ABC):
    """Key-value document store with get and merge-set semantics."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return a copy of the document, or None if it does not exist."""

    @abstractmethod
    async def merge(
        self, collection: str, doc_id: str, partial: dict[str, Any]
    ) -> dict[str, Any]:
        """Upsert ``partial`` into the document and return the merged result.

        The read-merge-write is atomic with respect to other callers of the
        same store instance.
        """

    async def close(self) -> None:
        """Release resources held by the store."""
