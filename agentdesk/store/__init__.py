"""Configuration storage for AgentDesk."""

from agentdesk.config import Config
from agentdesk.store.base import DocumentStore, deep_merge
from agentdesk.store.memory import InMemoryDocumentStore
from agentdesk.store.profile_store import ProfileStore
from agentdesk.store.sqlite import SQLiteDocumentStore


def create_document_store(cfg: Config) -> DocumentStore:
    """Build the document store selected by ``cfg.store_backend``."""
    if cfg.store_backend == "memory":
        return InMemoryDocumentStore()
    return SQLiteDocumentStore(cfg.store_path)


__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "ProfileStore",
    "SQLiteDocumentStore",
    "create_document_store",
    "deep_merge",
]
