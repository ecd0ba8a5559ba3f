"""Analytics models."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from writetrack.models.entries import ActivityType


class ActivityBreakdown(BaseModel):
    """Aggregates for one activity type."""

    activity_type: ActivityType
    entry_count: int = 0
    total_minutes: float = 0.0
    total_words: int = 0


class DashboardStats(BaseModel):
    """Headline numbers shown on the dashboard."""

    entry_count: int = 0
    total_words: int = 0
    total_minutes: float = 0.0
    by_activity: list[ActivityBreakdown] = Field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return self.total_minutes / 60


class CalendarDay(BaseModel):
    """One cell of the month grid."""

    day: date
    in_month: bool = True
    has_entry: bool = False
    is_today: bool = False
    is_selected: bool = False


class CalendarMonth(BaseModel):
    """Six Monday-first weeks covering a month."""

    year: int
    month: int
    weekdays: list[str] = Field(
        default_factory=lambda: ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    )
    days: list[CalendarDay] = Field(default_factory=list)

    @property
    def weeks(self) -> list[list[CalendarDay]]:
        return [self.days[i : i + 7] for i in range(0, len(self.days), 7)]
