"""Sign-in driven backend selection and one-time local → remote migration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from writetrack.data.remote_store import new_document_id
from writetrack.models.storage import (
    MigrationAction,
    MigrationDecision,
    MigrationReport,
    StorageMode,
    mode_for_user,
)
from writetrack.services.entry_service import CLOUD_DISABLED

if TYPE_CHECKING:
    from writetrack.data.local_store import LocalStorage
    from writetrack.data.protocols import RemoteCollection
    from writetrack.services.entry_service import EntryService

logger = logging.getLogger(__name__)

MIGRATION_IN_PROGRESS = "A migration is already in progress."
MIGRATION_WRONG_ACCOUNT = "Entries can only be migrated into the signed-in account."


class ReconciliationService:
    """Tracks sign-in state and moves local entries into the cloud on first sign-in.

    Confirmation is left to the caller: ``on_auth_changed`` returns a
    decision, and the caller invokes ``migrate`` if the user agrees.
    """

    def __init__(
        self,
        storage: LocalStorage,
        entries: EntryService,
        remote: RemoteCollection | None = None,
    ) -> None:
        self._storage = storage
        self._entries = entries
        self._remote = remote
        self._migrating = False

    @property
    def migration_in_flight(self) -> bool:
        return self._migrating

    async def current_user(self) -> str | None:
        return await self._storage.get_auth_user()

    async def restore(self) -> Result[StorageMode, str]:
        """Activate the backend matching the persisted sign-in state."""
        return await self._entries.activate(mode_for_user(await self.current_user()))

    async def on_auth_changed(self, user_id: str | None) -> Result[MigrationDecision, str]:
        """Apply a new sign-in state and report whether a migration should be offered."""
        if user_id and self._remote is None:
            return Err(CLOUD_DISABLED)
        previous = await self._storage.get_auth_user()

        activated = await self._entries.activate(mode_for_user(user_id))
        if isinstance(activated, Err):
            return activated
        await self._storage.set_auth_user(user_id)

        if previous or not user_id or self._migrating:
            return Ok(MigrationDecision())
        local_entries = await self._storage.load_entries()
        if not local_entries:
            return Ok(MigrationDecision())
        logger.info(
            "User %s signed in with %d local entries; offering migration",
            user_id,
            len(local_entries),
        )
        return Ok(
            MigrationDecision(
                action=MigrationAction.PROMPT,
                user_id=user_id,
                local_entry_count=len(local_entries),
            )
        )

    async def migrate(self, user_id: str) -> Result[MigrationReport, str]:
        """Upsert every local entry under its own id, then clear local storage.

        Only the persisted signed-in user can receive the entries.
        Local entries are cleared only when every write succeeded. Remote
        writes that did succeed are kept; running again is safe.
        """
        if self._remote is None:
            return Err(CLOUD_DISABLED)
        if self._migrating:
            return Err(MIGRATION_IN_PROGRESS)

        self._migrating = True
        try:
            if await self._storage.get_auth_user() != user_id:
                logger.warning("Refusing migration into %s: not the signed-in user", user_id)
                return Err(MIGRATION_WRONG_ACCOUNT)
            local_entries = await self._storage.load_entries()
            for entry in local_entries:
                document = entry if entry.id else entry.model_copy(update={"id": new_document_id()})
                await self._remote.upsert_entry(user_id, document)
            await self._storage.clear_entries()
        except Exception as exc:
            logger.exception("Migration for %s failed; local entries kept", user_id)
            return Err(f"Migration failed, your local entries were kept: {exc}")
        finally:
            self._migrating = False

        logger.info("Migrated %d entries for %s", len(local_entries), user_id)
        return Ok(MigrationReport(user_id=user_id, migrated=len(local_entries)))
