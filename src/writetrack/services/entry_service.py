"""Entry service — one list/save/import/export API over the active backend."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError
from result import Err, Ok, Result

from writetrack.data.local_store import LocalEntryBackend
from writetrack.data.remote_store import RemoteEntryBackend
from writetrack.models.entries import REQUIRED_IMPORT_FIELDS, WritingEntry, sort_newest_first
from writetrack.models.storage import (
    ExportSummary,
    ImportSummary,
    LocalMode,
    RemoteMode,
    StorageMode,
)

if TYPE_CHECKING:
    from writetrack.data.local_store import LocalStorage
    from writetrack.data.protocols import EntryBackend, RemoteCollection, Unsubscribe
    from writetrack.services.ai_service import AIService

logger = logging.getLogger(__name__)

NO_DATA_TO_EXPORT = "No data to export."
IMPORT_BLOCKED = (
    "Import is disabled while signed in to prevent data conflicts. "
    "Please sign out to import local data."
)
CLOUD_DISABLED = "Cloud features are disabled. Configure a remote database to sign in."
SIGNED_IN_OFFLINE = (
    "Signed in as {user}, but cloud storage is unavailable. "
    "Nothing was written to this device; sign out to work locally."
)

_ENTRY_LIST = TypeAdapter(list[WritingEntry])


def backup_filename(day: date) -> str:
    return f"writetrack-backup-{day.isoformat()}.json"


def serialize_entries(entries: list[WritingEntry]) -> str:
    """Pretty-printed JSON array, entries unchanged."""
    return json.dumps([entry.model_dump(mode="json") for entry in entries], indent=2)


def parse_import(text: str) -> Result[list[WritingEntry], str]:
    """Validate an import file as a whole; any bad element rejects everything."""
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        return Err(f"Error importing data: file is not valid JSON ({exc.msg}).")
    if not isinstance(data, list):
        return Err("Error importing data: Invalid format: data is not an array.")
    invalid = "Invalid format: one or more items in the file are not valid writing entries."
    for item in data:
        if not isinstance(item, dict) or any(key not in item for key in REQUIRED_IMPORT_FIELDS):
            return Err(f"Error importing data: {invalid}")
    try:
        return Ok(_ENTRY_LIST.validate_python(data))
    except ValidationError as exc:
        return Err(f"Error importing data: {invalid} ({exc.error_count()} validation error(s))")


def merge_entries(
    existing: list[WritingEntry], incoming: list[WritingEntry]
) -> tuple[list[WritingEntry], int]:
    """Union by id, newest first; existing entries win. Returns the merged list and how many were added."""
    merged: dict[str, WritingEntry] = {}
    for entry in [*existing, *incoming]:
        merged.setdefault(entry.id, entry)
    combined = sort_newest_first(list(merged.values()))
    return combined, len(combined) - len({entry.id for entry in existing})


def append_timer_log(notes: str, message: str, at: datetime | None = None) -> str:
    """Append a ``[HH:MM:SS] message`` line to process notes."""
    stamp = (at or datetime.now().astimezone()).strftime("%H:%M:%S")
    return f"{notes}\n[{stamp}] {message}"


class EntryService:
    """Service for entry reads and writes.

    Signed out, the local slot is authoritative. Signed in, the list is a
    live view kept current by remote snapshots; local storage is not touched.
    """

    def __init__(
        self,
        storage: LocalStorage,
        remote: RemoteCollection | None = None,
        ai: AIService | None = None,
    ) -> None:
        self._storage = storage
        self._remote = remote
        self._ai = ai
        self._mode: StorageMode = LocalMode()
        self._backend: EntryBackend = LocalEntryBackend(storage)
        self._view: list[WritingEntry] = []
        self._unsubscribe: Unsubscribe | None = None
        self.last_sync_error: str | None = None

    @property
    def mode(self) -> StorageMode:
        return self._mode

    @property
    def signed_in(self) -> bool:
        return isinstance(self._mode, RemoteMode)

    async def activate(self, mode: StorageMode) -> Result[StorageMode, str]:
        """Switch the authoritative backend."""
        if mode == self._mode and (isinstance(mode, LocalMode) or self._unsubscribe):
            return Ok(mode)
        match mode:
            case RemoteMode(user_id=user_id):
                if self._remote is None:
                    return Err(CLOUD_DISABLED)
                backend = RemoteEntryBackend(self._remote, user_id)
                try:
                    snapshot = await backend.list()
                except Exception as exc:
                    logger.exception("Failed to load remote entries for %s", user_id)
                    return Err(f"Failed to load cloud entries: {exc}")
                self._detach()
                self._backend = backend
                self._view = snapshot
                self._unsubscribe = backend.subscribe(self._on_snapshot, self._on_sync_error)
            case LocalMode():
                self._detach()
                self._backend = LocalEntryBackend(self._storage)
                self._view = []
        self._mode = mode
        self.last_sync_error = None
        logger.info("Storage mode is now %s", mode)
        return Ok(mode)

    def close(self) -> None:
        self._detach()

    async def list_entries(self) -> Result[list[WritingEntry], str]:
        if self.signed_in:
            return Ok(list(self._view))
        try:
            return Ok(await self._backend.list())
        except Exception as exc:
            logger.exception("Failed to read local entries")
            return Err(f"Failed to load entries: {exc}")

    async def get_entry(self, entry_id: str) -> Result[WritingEntry, str]:
        listed = await self.list_entries()
        if isinstance(listed, Err):
            return listed
        for entry in listed.ok_value:
            if entry.id == entry_id:
                return Ok(entry)
        return Err(f"Entry {entry_id} not found")

    async def save_entry(self, entry: WritingEntry) -> Result[WritingEntry, str]:
        """Create when the id is unknown to the active backend, otherwise update in place."""
        writable = await self._check_local_writable()
        if isinstance(writable, Err):
            return writable
        listed = await self.list_entries()
        if isinstance(listed, Err):
            return listed
        known_ids = {existing.id for existing in listed.ok_value}
        create = not entry.id or entry.id not in known_ids

        prepared = entry.with_derived_fields()
        if create and not prepared.title.strip() and self._ai is not None:
            title = await self._ai.generate_entry_title(prepared.content, prepared.activity_type)
            prepared = prepared.model_copy(update={"title": title})

        try:
            saved = await self._backend.save(prepared, create=create)
        except Exception as exc:
            logger.exception("Failed to save entry %s", entry.id or "<new>")
            return Err(f"Failed to save entry: {exc}")
        logger.info("%s entry %s", "Created" if create else "Updated", saved.id)
        return Ok(saved)

    async def import_entries(self, text: str) -> Result[ImportSummary, str]:
        if self.signed_in:
            return Err(IMPORT_BLOCKED)
        writable = await self._check_local_writable()
        if isinstance(writable, Err):
            return writable
        parsed = parse_import(text)
        if isinstance(parsed, Err):
            return parsed
        incoming = parsed.ok_value
        try:
            existing = await self._storage.load_entries()
            merged, added = merge_entries(existing, incoming)
            await self._storage.store_entries(merged)
        except Exception as exc:
            logger.exception("Failed to store imported entries")
            return Err(f"Error importing data: {exc}")
        logger.info("Imported %d new entries out of %d", added, len(incoming))
        return Ok(ImportSummary(received=len(incoming), added=added))

    async def import_file(self, path: Path) -> Result[ImportSummary, str]:
        if self.signed_in:
            return Err(IMPORT_BLOCKED)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            return Err(f"Error reading file: {exc}")
        return await self.import_entries(text)

    async def export_entries(
        self, directory: Path, day: date | None = None
    ) -> Result[ExportSummary, str]:
        listed = await self.list_entries()
        if isinstance(listed, Err):
            return listed
        entries = listed.ok_value
        if not entries:
            return Ok(ExportSummary(message=NO_DATA_TO_EXPORT))
        target = directory / backup_filename(day or date.today())
        try:
            directory.mkdir(parents=True, exist_ok=True)
            target.write_text(serialize_entries(entries), encoding="utf-8")
        except OSError as exc:
            return Err(f"Export failed: {exc}")
        return Ok(
            ExportSummary(
                count=len(entries),
                path=target,
                message=f"Successfully exported {len(entries)} entries.",
            )
        )

    async def _check_local_writable(self) -> Result[None, str]:
        """Refuse local writes while a sign-in is persisted but the cloud is not active."""
        if self.signed_in:
            return Ok(None)
        try:
            user = await self._storage.get_auth_user()
        except Exception as exc:
            logger.exception("Failed to read sign-in state")
            return Err(f"Failed to read sign-in state: {exc}")
        if user:
            return Err(SIGNED_IN_OFFLINE.format(user=user))
        return Ok(None)

    def _on_snapshot(self, entries: list[WritingEntry]) -> None:
        self._view = entries
        self.last_sync_error = None

    def _on_sync_error(self, exc: Exception) -> None:
        logger.error("Remote subscription error; keeping last snapshot: %s", exc)
        self.last_sync_error = str(exc)

    def _detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
