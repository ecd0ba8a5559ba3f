"""Local key/value storage for entries, timer settings and sign-in state."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from writetrack.data.repositories import KeyValueRepository
from writetrack.models.entries import WritingEntry, sort_newest_first

if TYPE_CHECKING:
    from writetrack.data.db import Database
    from writetrack.data.protocols import ErrorCallback, SnapshotCallback

logger = logging.getLogger(__name__)

ENTRIES_KEY = "writetrack-entries"
TIMER_SETTINGS_KEY = "writetrack-timer-settings"
AUTH_USER_KEY = "writetrack-auth-user"

_ENTRY_LIST = TypeAdapter(list[WritingEntry])


class LocalStorage:
    """JSON slots on top of the ``kv_store`` table."""

    def __init__(self, db: Database) -> None:
        self._repo = KeyValueRepository(db)

    async def get_json(self, key: str, default: Any = None) -> Any:
        raw = await self._repo.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable value in slot %s", key)
            return default

    async def set_json(self, key: str, value: Any) -> None:
        await self._repo.set(key, json.dumps(value))

    async def remove(self, key: str) -> None:
        await self._repo.delete(key)

    async def load_entries(self) -> list[WritingEntry]:
        raw = await self._repo.get(ENTRIES_KEY)
        if raw is None:
            return []
        try:
            return _ENTRY_LIST.validate_json(raw)
        except ValidationError:
            logger.exception("Local entry slot is corrupt; treating it as empty")
            return []

    async def store_entries(self, entries: list[WritingEntry]) -> None:
        await self._repo.set(ENTRIES_KEY, _ENTRY_LIST.dump_json(entries).decode())

    async def clear_entries(self) -> None:
        await self.store_entries([])

    async def get_auth_user(self) -> str | None:
        value = await self.get_json(AUTH_USER_KEY)
        return str(value) if value else None

    async def set_auth_user(self, user_id: str | None) -> None:
        if user_id:
            await self.set_json(AUTH_USER_KEY, user_id)
        else:
            await self.remove(AUTH_USER_KEY)


class LocalEntryBackend:
    """Entry backend reading and writing the local entry slot directly."""

    def __init__(
        self, storage: LocalStorage, id_factory: Callable[[], str] | None = None
    ) -> None:
        self._storage = storage
        self._id_factory = id_factory or new_local_id

    async def list(self) -> list[WritingEntry]:
        return await self._storage.load_entries()

    async def save(self, entry: WritingEntry, *, create: bool) -> WritingEntry:
        entries = await self._storage.load_entries()
        if create:
            saved = entry.model_copy(update={"id": self._id_factory()})
            entries = sort_newest_first([saved, *entries])
        else:
            saved = entry
            entries = [saved if existing.id == entry.id else existing for existing in entries]
        await self._storage.store_entries(entries)
        return saved

    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Local storage has no change feed."""
        return None


def new_local_id() -> str:
    return uuid.uuid4().hex
