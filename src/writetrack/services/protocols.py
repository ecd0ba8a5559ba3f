"""Protocol definitions for services."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Protocol

from result import Result

from writetrack.models.analytics import CalendarMonth, DashboardStats
from writetrack.models.entries import ActivityType, WritingEntry
from writetrack.models.planning import EntrySummary, PlannedActivity
from writetrack.models.storage import (
    ExportSummary,
    ImportSummary,
    MigrationDecision,
    MigrationReport,
    StorageMode,
)


class EntryServiceProtocol(Protocol):
    """Interface for entry operations."""

    async def activate(self, mode: StorageMode) -> Result[StorageMode, str]: ...

    async def list_entries(self) -> Result[list[WritingEntry], str]: ...

    async def get_entry(self, entry_id: str) -> Result[WritingEntry, str]: ...

    async def save_entry(self, entry: WritingEntry) -> Result[WritingEntry, str]: ...

    async def import_entries(self, text: str) -> Result[ImportSummary, str]: ...

    async def export_entries(
        self, directory: Path, day: date | None = None
    ) -> Result[ExportSummary, str]: ...


class ReconciliationServiceProtocol(Protocol):
    """Interface for sign-in handling and migration."""

    async def on_auth_changed(self, user_id: str | None) -> Result[MigrationDecision, str]: ...

    async def migrate(self, user_id: str) -> Result[MigrationReport, str]: ...


class AnalyticsServiceProtocol(Protocol):
    """Interface for analytics operations."""

    async def get_dashboard_stats(self) -> Result[DashboardStats, str]: ...

    async def get_calendar_month(
        self, year: int, month: int, *, selected: date | None = None
    ) -> Result[CalendarMonth, str]: ...


class AIServiceProtocol(Protocol):
    """Interface for generative helpers. Implementations never raise."""

    async def generate_entry_title(self, content: str, activity_type: ActivityType) -> str: ...

    async def generate_entry_summary(self, entry: WritingEntry) -> EntrySummary: ...

    async def parse_multi_day_plan(
        self, description: str, start_date: date, end_date: date
    ) -> list[PlannedActivity]: ...
