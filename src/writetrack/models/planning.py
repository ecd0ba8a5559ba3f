"""Planning models."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator

from writetrack.models.entries import ActivityType


class PlannedActivity(BaseModel):
    """A scheduled activity parsed from a free-text plan."""

    id: str = ""
    date: date
    activity_type: ActivityType
    title: str = ""
    start_time: str = "09:00"
    duration_minutes: int = Field(default=60, ge=0)
    notes: str = ""

    @field_validator("start_time")
    @classmethod
    def _check_start_time(cls, value: str) -> str:
        hour_text, sep, minute_text = value.strip().partition(":")
        if not sep or not hour_text.isdigit() or not minute_text[:2].isdigit():
            msg = f"start_time must be HH:MM, got {value!r}"
            raise ValueError(msg)
        hour, minute = int(hour_text), int(minute_text[:2])
        if not (0 <= hour < 24 and 0 <= minute < 60):
            msg = f"start_time out of range: {value!r}"
            raise ValueError(msg)
        return f"{hour:02d}:{minute:02d}"


class EntrySummary(BaseModel):
    """AI-derived summary of an entry."""

    summary: str = ""
    themes: list[str] = Field(default_factory=list)
    suggested_tags: list[str] = Field(default_factory=list)
