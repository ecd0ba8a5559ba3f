"""Protocol definitions for data access."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from writetrack.models.entries import WritingEntry

type SnapshotCallback = Callable[[list[WritingEntry]], None]
type ErrorCallback = Callable[[Exception], None]
type Unsubscribe = Callable[[], None]


class DatabaseProtocol(Protocol):
    """Async database interface."""

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> Any: ...

    async def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[Any]: ...

    async def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> Any | None: ...

    async def commit(self) -> None: ...


class RemoteCollection(Protocol):
    """A per-user remote collection of entry documents keyed by entry id."""

    async def list_entries(self, user_id: str) -> list[WritingEntry]: ...

    async def upsert_entry(self, user_id: str, entry: WritingEntry) -> None: ...

    async def create_entry(self, user_id: str, entry: WritingEntry) -> WritingEntry: ...

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe: ...


class EntryBackend(Protocol):
    """Storage strategy the entry service reads and writes through."""

    async def list(self) -> list[WritingEntry]: ...

    async def save(self, entry: WritingEntry, *, create: bool) -> WritingEntry: ...

    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe | None: ...
