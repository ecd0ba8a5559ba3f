"""Service container with DI wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from result import Err

from writetrack.data.db import DOCUMENT_SCHEMA_SQL, Database
from writetrack.data.local_store import LocalStorage
from writetrack.data.remote_store import DocumentEntryCollection
from writetrack.services.ai_service import AIService
from writetrack.services.analytics_service import AnalyticsService
from writetrack.services.entry_service import EntryService
from writetrack.services.gemini import GeminiClient
from writetrack.services.reconciliation import ReconciliationService
from writetrack.services.settings_service import SettingsService

if TYPE_CHECKING:
    from writetrack.config import Config

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Holds all application services. Built once at startup, immutable."""

    db: Database
    remote_db: Database | None
    entry_service: EntryService
    reconciliation: ReconciliationService
    analytics_service: AnalyticsService
    settings_service: SettingsService
    ai_service: AIService
    ai_client: GeminiClient | None = None
    restore_error: str | None = None

    @classmethod
    async def create(cls, config: Config) -> ServiceContainer:
        """Async factory that wires all dependencies and restores the sign-in state."""
        db = Database(config.db_path)
        await db.connect()

        remote_db: Database | None = None
        collection: DocumentEntryCollection | None = None
        if config.remote is not None:
            remote_db = Database(config.remote.db_path, DOCUMENT_SCHEMA_SQL)
            await remote_db.connect()
            collection = DocumentEntryCollection(remote_db)

        storage = LocalStorage(db)
        ai_client = GeminiClient(config.ai) if config.ai is not None else None
        ai_service = AIService(ai_client)
        entry_service = EntryService(storage, collection, ai_service)
        reconciliation = ReconciliationService(storage, entry_service, collection)

        restored = await reconciliation.restore()
        restore_error: str | None = None
        if isinstance(restored, Err):
            logger.error("Could not restore sign-in state: %s", restored.err_value)
            restore_error = restored.err_value

        return cls(
            db=db,
            remote_db=remote_db,
            entry_service=entry_service,
            reconciliation=reconciliation,
            analytics_service=AnalyticsService(entry_service),
            settings_service=SettingsService(storage),
            ai_service=ai_service,
            ai_client=ai_client,
            restore_error=restore_error,
        )

    async def close(self) -> None:
        """Shut down all services."""
        self.entry_service.close()
        if self.ai_client is not None:
            self.ai_client.close()
        if self.remote_db is not None:
            await self.remote_db.close()
        await self.db.close()
