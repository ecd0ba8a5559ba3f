"""Writing entry models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class ActivityType(StrEnum):
    """The six fixed categories of logged work. Values are the persisted strings."""

    WRITING = "Writing"
    EDITING = "Editing"
    PLANNING = "Planning/Outlining"
    REVIEW = "Process Review"
    RESEARCH = "Reading/Research"
    SETUP = "Tool Setup"


class EntryStatus(StrEnum):
    COMPLETED = "Completed"
    IN_PROGRESS = "In Progress"
    PLANNED = "Planned"


# Default sub-type label and selectable options per activity type.
WRITING_TYPE_DEFAULTS: dict[ActivityType, tuple[str, tuple[str, ...]]] = {
    ActivityType.WRITING: (
        "Writing",
        ("Writing", "Fiction", "Non-Fiction", "Journaling", "Other"),
    ),
    ActivityType.EDITING: ("Editing", ("Editing", "Proofreading", "Line Editing", "Other")),
    ActivityType.PLANNING: (
        "Outlining",
        ("Outlining", "Brainstorming", "Mind Mapping", "Other"),
    ),
    ActivityType.REVIEW: ("Process Review", ("Process Review", "Feedback Analysis", "Other")),
    ActivityType.RESEARCH: ("Reading/Research", ("Reading/Research", "Note Taking", "Other")),
    ActivityType.SETUP: ("Tool Setup", ("Tool Setup", "Workflow Design", "Other")),
}

# Fields an imported object must carry to be accepted at all.
REQUIRED_IMPORT_FIELDS: tuple[str, ...] = ("id", "entry_date", "activity_type", "content")


def default_writing_type(activity_type: ActivityType) -> str:
    return WRITING_TYPE_DEFAULTS[activity_type][0]


def count_words(text: str) -> int:
    """Count whitespace-separated tokens."""
    return len(text.split())


def untitled_title(activity_type: ActivityType) -> str:
    return f"Untitled {activity_type.value} Entry"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class WritingEntry(BaseModel):
    """One logged writing-related session."""

    id: str = ""
    entry_date: datetime = Field(default_factory=_utc_now)
    activity_type: ActivityType
    writing_type: str = ""
    status: EntryStatus = EntryStatus.COMPLETED
    title: str = ""
    content: str = ""
    notes: str = ""
    word_count: int = Field(default=0, ge=0)
    time_spent_minutes: int | float = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    ai_summary: str | None = None
    ai_themes: list[str] | None = None

    @field_validator("entry_date")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for tag in value:
            cleaned = tag.strip()
            if cleaned:
                seen.setdefault(cleaned, None)
        return list(seen)

    @classmethod
    def new(cls, activity_type: ActivityType, **fields: object) -> WritingEntry:
        """Create an unsaved entry with the activity's default sub-type."""
        fields.setdefault("writing_type", default_writing_type(activity_type))
        return cls(activity_type=activity_type, **fields)  # type: ignore[arg-type]

    def with_derived_fields(self) -> WritingEntry:
        """Return a copy with ``word_count`` recomputed from content."""
        return self.model_copy(update={"word_count": count_words(self.content)})


def sort_newest_first(entries: list[WritingEntry]) -> list[WritingEntry]:
    return sorted(entries, key=lambda entry: entry.entry_date, reverse=True)
