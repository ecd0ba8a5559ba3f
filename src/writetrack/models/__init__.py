"""Pydantic models for WriteTrack."""

from writetrack.models.analytics import (
    ActivityBreakdown,
    CalendarDay,
    CalendarMonth,
    DashboardStats,
)
from writetrack.models.entries import (
    ActivityType,
    EntryStatus,
    WritingEntry,
    count_words,
    default_writing_type,
    untitled_title,
)
from writetrack.models.planning import EntrySummary, PlannedActivity
from writetrack.models.storage import (
    ExportSummary,
    ImportSummary,
    LocalMode,
    MigrationAction,
    MigrationDecision,
    MigrationReport,
    RemoteMode,
    StorageMode,
    TimerSettings,
    mode_for_user,
)

__all__ = [
    "ActivityBreakdown",
    "ActivityType",
    "CalendarDay",
    "CalendarMonth",
    "DashboardStats",
    "EntryStatus",
    "EntrySummary",
    "ExportSummary",
    "ImportSummary",
    "LocalMode",
    "MigrationAction",
    "MigrationDecision",
    "MigrationReport",
    "PlannedActivity",
    "RemoteMode",
    "StorageMode",
    "TimerSettings",
    "WritingEntry",
    "count_words",
    "default_writing_type",
    "mode_for_user",
    "untitled_title",
]
