"""Repository layer for SQL persistence and query access."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aiosqlite import Row

    from writetrack.data.protocols import DatabaseProtocol


class KeyValueRepository:
    """SQL access to the local key/value slots."""

    def __init__(self, db: DatabaseProtocol) -> None:
        self._db = db

    async def get(self, key: str) -> str | None:
        row = await self._db.fetch_one("SELECT value FROM kv_store WHERE key = ?", (key,))
        if row is None:
            return None
        return str(row["value"])

    async def set(self, key: str, value: str) -> None:
        await self._db.execute(
            """INSERT INTO kv_store (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')""",
            (key, value),
        )
        await self._db.commit()

    async def delete(self, key: str) -> None:
        await self._db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await self._db.commit()

    async def keys(self) -> list[str]:
        rows = await self._db.fetch_all("SELECT key FROM kv_store ORDER BY key")
        return [str(row["key"]) for row in rows]


class DocumentRepository:
    """SQL access to per-user document collections."""

    def __init__(self, db: DatabaseProtocol) -> None:
        self._db = db

    async def upsert(
        self,
        user_id: str,
        collection: str,
        doc_id: str,
        data: str,
        sort_key: str,
    ) -> None:
        await self._db.execute(
            """INSERT INTO documents (user_id, collection, doc_id, sort_key, data)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(user_id, collection, doc_id) DO UPDATE SET
                   sort_key = excluded.sort_key,
                   data = excluded.data,
                   updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')""",
            (user_id, collection, doc_id, sort_key, data),
        )
        await self._db.commit()

    async def list_rows(self, user_id: str, collection: str) -> list[Row]:
        return await self._db.fetch_all(
            """SELECT doc_id, data FROM documents
               WHERE user_id = ? AND collection = ?
               ORDER BY sort_key DESC, doc_id""",
            (user_id, collection),
        )

    async def get_row(self, user_id: str, collection: str, doc_id: str) -> Row | None:
        return await self._db.fetch_one(
            """SELECT doc_id, data FROM documents
               WHERE user_id = ? AND collection = ? AND doc_id = ?""",
            (user_id, collection, doc_id),
        )

    async def exists(self, user_id: str, collection: str, doc_id: str) -> bool:
        row = await self._db.fetch_one(
            """SELECT 1 FROM documents
               WHERE user_id = ? AND collection = ? AND doc_id = ?""",
            (user_id, collection, doc_id),
        )
        return row is not None

    async def count(self, user_id: str, collection: str) -> int:
        row = await self._db.fetch_one(
            "SELECT COUNT(*) as cnt FROM documents WHERE user_id = ? AND collection = ?",
            (user_id, collection),
        )
        return int(row["cnt"]) if row else 0
