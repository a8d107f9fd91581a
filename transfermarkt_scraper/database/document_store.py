"""
Document Store
JSONB-Collections mit find/insert/upsert/partial update über den asyncpg Pool.

Dokumente sind dicts mit einem ``id``-Schlüssel (``Entity.to_document()``).
Fehler des Treibers werden als StoreFailure weitergereicht, nie still verschluckt.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import asyncpg

from ..domain.errors import StoreFailure
from .manager import DatabaseManager
from .schema import COLLECTIONS

logger = logging.getLogger(__name__)


def _table(collection: str) -> str:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection '{collection}'. Supported: {', '.join(COLLECTIONS)}")
    return collection


class DocumentStore:
    """Persistenter Store über PostgreSQL/JSONB."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    @asynccontextmanager
    async def _connection(self, operation: str, collection: str):
        try:
            async with self.db.get_async_connection() as conn:
                yield conn
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            logger.error("%s on %s failed: %s", operation, collection, e)
            raise StoreFailure(operation, collection, e) from e

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        table = _table(collection)
        async with self._connection("find_by_id", collection) as conn:
            return await conn.fetchval(f"SELECT doc FROM {table} WHERE id = $1", doc_id)

    async def find(self, collection: str, predicate: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Alle Dokumente, die *predicate* enthalten (JSON containment, ``doc @> predicate``)."""
        table = _table(collection)
        async with self._connection("find", collection) as conn:
            if predicate:
                rows = await conn.fetch(f"SELECT doc FROM {table} WHERE doc @> $1::jsonb ORDER BY id", predicate)
            else:
                rows = await conn.fetch(f"SELECT doc FROM {table} ORDER BY id")
        return [row["doc"] for row in rows]

    async def insert_many(self, collection: str, docs: list[dict[str, Any]]) -> int:
        if not docs:
            return 0
        table = _table(collection)
        async with self._connection("insert_many", collection) as conn:
            await conn.executemany(
                f"INSERT INTO {table} (id, doc) VALUES ($1, $2::jsonb) ON CONFLICT (id) DO NOTHING",
                [(d["id"], d) for d in docs],
            )
        logger.debug("Inserted %d documents into %s", len(docs), table)
        return len(docs)

    async def upsert(self, collection: str, doc: dict[str, Any]) -> None:
        table = _table(collection)
        async with self._connection("upsert", collection) as conn:
            await conn.execute(
                f"""
                INSERT INTO {table} (id, doc) VALUES ($1, $2::jsonb)
                ON CONFLICT (id) DO UPDATE SET doc = EXCLUDED.doc, updated_at = now()
                """,
                doc["id"],
                doc,
            )

    async def update_field(self, collection: str, doc_id: str, field: str, value: Any) -> bool:
        """Ersetzt genau ein Top-Level-Feld des Dokuments. False, wenn das Dokument fehlt."""
        table = _table(collection)
        async with self._connection("update_field", collection) as conn:
            status = await conn.execute(
                f"""
                UPDATE {table}
                SET doc = jsonb_set(doc, $2::text[], COALESCE($3::jsonb, 'null'::jsonb), true), updated_at = now()
                WHERE id = $1
                """,
                doc_id,
                [field],
                value,
            )
        return status.endswith(" 1")

    async def wipe(self, collection: str) -> None:
        table = _table(collection)
        async with self._connection("wipe", collection) as conn:
            await conn.execute(f"DELETE FROM {table}")
        logger.warning("Collection %s wiped", table)


__all__ = ["DocumentStore", "COLLECTIONS"]
