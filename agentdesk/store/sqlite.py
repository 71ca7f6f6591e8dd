"""SQLite-backed document store."""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from agentdesk.store.base import DocumentStore, deep_merge

logger = logging.getLogger(__name__)


class SQLiteDocumentStore(DocumentStore):
    """Stores each document as a JSON blob in a single SQLite table.

    Each operation opens its own connection in a worker thread, so the
    database path must be a file (``:memory:`` would not persist).
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database with the documents table."""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                doc_id TEXT NOT NULL,
                body TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (collection, doc_id)
            )
        """)

        conn.commit()
        conn.close()
        logger.info(f"Document store initialized at {self.db_path}")

    def _get_sync(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        conn = sqlite3.connect(self.db_path)
        try:
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()
        finally:
            conn.close()

        return json.loads(row[0]) if row else None

    def _merge_sync(
        self, collection: str, doc_id: str, partial: dict[str, Any]
    ) -> dict[str, Any]:
        # Autocommit mode so the transaction boundaries below are explicit
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()
            existing = json.loads(row[0]) if row else {}
            merged = deep_merge(existing, partial)

            conn.execute(
                """
                INSERT INTO documents (collection, doc_id, body, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (collection, doc_id)
                DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at
            """,
                (collection, doc_id, json.dumps(merged), datetime.now().isoformat()),
            )
            conn.execute("COMMIT")
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

        return merged

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._get_sync, collection, doc_id)

    async def merge(
        self, collection: str, doc_id: str, partial: dict[str, Any]
    ) -> dict[str, Any]:
        merged = await asyncio.to_thread(self._merge_sync, collection, doc_id, partial)
        logger.debug(f"Merged {sorted(partial)} into {collection}/{doc_id}")
        return merged
