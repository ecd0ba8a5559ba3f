"""Per-user remote entry collections stored in a shared document database."""

from __future__ import annotations

import logging
import secrets
import string
from datetime import UTC
from typing import TYPE_CHECKING

from pydantic import ValidationError

from writetrack.data.repositories import DocumentRepository
from writetrack.models.entries import WritingEntry

if TYPE_CHECKING:
    from writetrack.data.db import Database
    from writetrack.data.protocols import (
        ErrorCallback,
        RemoteCollection,
        SnapshotCallback,
        Unsubscribe,
    )

logger = logging.getLogger(__name__)

ENTRIES_COLLECTION = "entries"
_AUTO_ID_ALPHABET = string.ascii_letters + string.digits
_AUTO_ID_LENGTH = 20


def new_document_id() -> str:
    """Store-generated document id in the 20-character auto-id style."""
    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(_AUTO_ID_LENGTH))


class _Listener:
    __slots__ = ("on_error", "on_snapshot")

    def __init__(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback | None) -> None:
        self.on_snapshot = on_snapshot
        self.on_error = on_error


class DocumentEntryCollection:
    """Remote collection ``users/<uid>/entries`` with push snapshots.

    Every committed write is followed by a full, newest-first snapshot pushed
    to each listener registered for that user in this process.
    """

    def __init__(self, db: Database, collection: str = ENTRIES_COLLECTION) -> None:
        self._repo = DocumentRepository(db)
        self._collection = collection
        self._listeners: dict[str, list[_Listener]] = {}

    async def list_entries(self, user_id: str) -> list[WritingEntry]:
        rows = await self._repo.list_rows(user_id, self._collection)
        entries: list[WritingEntry] = []
        for row in rows:
            try:
                entry = WritingEntry.model_validate_json(row["data"])
            except ValidationError:
                logger.warning("Skipping malformed document %s for user %s", row["doc_id"], user_id)
                continue
            entries.append(entry.model_copy(update={"id": str(row["doc_id"])}))
        return entries

    async def get_entry(self, user_id: str, entry_id: str) -> WritingEntry | None:
        row = await self._repo.get_row(user_id, self._collection, entry_id)
        if row is None:
            return None
        return WritingEntry.model_validate_json(row["data"])

    async def count(self, user_id: str) -> int:
        return await self._repo.count(user_id, self._collection)

    async def upsert_entry(self, user_id: str, entry: WritingEntry) -> None:
        """Write ``entry`` under its own id, replacing any existing document."""
        if not entry.id:
            msg = "Cannot upsert an entry without an id"
            raise ValueError(msg)
        await self._repo.upsert(
            user_id,
            self._collection,
            entry.id,
            entry.model_dump_json(),
            entry.entry_date.astimezone(UTC).isoformat(),
        )
        await self._notify(user_id)

    async def create_entry(self, user_id: str, entry: WritingEntry) -> WritingEntry:
        """Add ``entry`` under a fresh store-generated id."""
        doc_id = new_document_id()
        while await self._repo.exists(user_id, self._collection, doc_id):
            doc_id = new_document_id()
        created = entry.model_copy(update={"id": doc_id})
        await self.upsert_entry(user_id, created)
        return created

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        listener = _Listener(on_snapshot, on_error)
        self._listeners.setdefault(user_id, []).append(listener)
        logger.debug("Subscribed listener to %s/%s", user_id, self._collection)

        def unsubscribe() -> None:
            listeners = self._listeners.get(user_id, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(user_id, None)

        return unsubscribe

    def listener_count(self, user_id: str) -> int:
        return len(self._listeners.get(user_id, []))

    async def _notify(self, user_id: str) -> None:
        listeners = list(self._listeners.get(user_id, []))
        if not listeners:
            return
        try:
            snapshot = await self.list_entries(user_id)
        except Exception as exc:
            logger.exception("Failed to build snapshot for %s", user_id)
            for listener in listeners:
                if listener.on_error is not None:
                    listener.on_error(exc)
            return
        for listener in listeners:
            listener.on_snapshot(list(snapshot))


class RemoteEntryBackend:
    """Entry backend bound to one signed-in user's remote collection."""

    def __init__(self, collection: RemoteCollection, user_id: str) -> None:
        self._collection = collection
        self._user_id = user_id

    @property
    def user_id(self) -> str:
        return self._user_id

    async def list(self) -> list[WritingEntry]:
        return await self._collection.list_entries(self._user_id)

    async def save(self, entry: WritingEntry, *, create: bool) -> WritingEntry:
        if create:
            return await self._collection.create_entry(self._user_id, entry)
        await self._collection.upsert_entry(self._user_id, entry)
        return entry

    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        return self._collection.subscribe(self._user_id, on_snapshot, on_error)
