"""Storage mode, settings and data-management result models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from writetrack.models.entries import ActivityType


@dataclass(frozen=True)
class LocalMode:
    """Entries live in the local key/value store."""


@dataclass(frozen=True)
class RemoteMode:
    """Entries live in the signed-in user's remote collection."""

    user_id: str


type StorageMode = LocalMode | RemoteMode


def mode_for_user(user_id: str | None) -> StorageMode:
    return RemoteMode(user_id) if user_id else LocalMode()


DEFAULT_TIMER_MINUTES: dict[ActivityType, int] = {
    ActivityType.WRITING: 30,
    ActivityType.EDITING: 30,
    ActivityType.RESEARCH: 60,
    ActivityType.PLANNING: 15,
    ActivityType.REVIEW: 15,
    ActivityType.SETUP: 15,
}


class TimerSettings(BaseModel):
    """Default goal minutes per activity type."""

    minutes: dict[ActivityType, int] = Field(default_factory=lambda: dict(DEFAULT_TIMER_MINUTES))

    def goal_for(self, activity_type: ActivityType) -> int:
        return self.minutes.get(activity_type, DEFAULT_TIMER_MINUTES[activity_type])


class MigrationAction(StrEnum):
    NONE = "none"
    PROMPT = "prompt"


class MigrationDecision(BaseModel):
    """What the caller should do after a sign-in state change."""

    action: MigrationAction = MigrationAction.NONE
    user_id: str = ""
    local_entry_count: int = 0

    @property
    def needs_confirmation(self) -> bool:
        return self.action is MigrationAction.PROMPT


class MigrationReport(BaseModel):
    user_id: str
    migrated: int = 0


class ImportSummary(BaseModel):
    received: int = 0
    added: int = 0

    @property
    def message(self) -> str:
        return f"Import successful. Added {self.added} new entries."


class ExportSummary(BaseModel):
    """Outcome of an export; ``path`` is None when nothing was written."""

    count: int = 0
    path: Path | None = None
    message: str = ""
