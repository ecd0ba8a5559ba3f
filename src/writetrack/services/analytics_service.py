"""Analytics service — dashboard totals and the month calendar."""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from writetrack.models.analytics import (
    ActivityBreakdown,
    CalendarDay,
    CalendarMonth,
    DashboardStats,
)
from writetrack.models.entries import ActivityType, WritingEntry

if TYPE_CHECKING:
    from writetrack.services.entry_service import EntryService

_CALENDAR_CELLS = 42


def local_day(moment: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of ``moment`` in ``tz`` (system local time when omitted)."""
    return moment.astimezone(tz).date()


def compute_dashboard_stats(entries: list[WritingEntry]) -> DashboardStats:
    buckets = {activity: ActivityBreakdown(activity_type=activity) for activity in ActivityType}
    for entry in entries:
        bucket = buckets[entry.activity_type]
        bucket.entry_count += 1
        bucket.total_minutes += entry.time_spent_minutes
        bucket.total_words += entry.word_count

    return DashboardStats(
        entry_count=len(entries),
        # Word total counts Writing entries only.
        total_words=buckets[ActivityType.WRITING].total_words,
        total_minutes=sum(bucket.total_minutes for bucket in buckets.values()),
        by_activity=list(buckets.values()),
    )


def build_calendar_month(
    entries: list[WritingEntry],
    year: int,
    month: int,
    *,
    selected: date | None = None,
    today: date | None = None,
    tz: tzinfo | None = None,
) -> CalendarMonth:
    first = date(year, month, 1)
    grid_start = first - timedelta(days=first.weekday())
    entry_days = {local_day(entry.entry_date, tz) for entry in entries}
    current = today or date.today()

    days: list[CalendarDay] = []
    for offset in range(_CALENDAR_CELLS):
        day = grid_start + timedelta(days=offset)
        days.append(
            CalendarDay(
                day=day,
                in_month=day.month == month,
                has_entry=day in entry_days,
                is_today=day == current,
                is_selected=day == selected,
            )
        )
    return CalendarMonth(year=year, month=month, days=days)


def entries_on(
    entries: list[WritingEntry], day: date, tz: tzinfo | None = None
) -> list[WritingEntry]:
    return [entry for entry in entries if local_day(entry.entry_date, tz) == day]


class AnalyticsService:
    """Service for statistics over the authoritative entry list."""

    def __init__(self, entries: EntryService) -> None:
        self._entries = entries

    async def get_dashboard_stats(self) -> Result[DashboardStats, str]:
        listed = await self._entries.list_entries()
        if isinstance(listed, Err):
            return listed
        return Ok(compute_dashboard_stats(listed.ok_value))

    async def get_calendar_month(
        self,
        year: int,
        month: int,
        *,
        selected: date | None = None,
        tz: tzinfo | None = None,
    ) -> Result[CalendarMonth, str]:
        if not 1 <= month <= 12:
            return Err(f"Invalid month: {month}")
        listed = await self._entries.list_entries()
        if isinstance(listed, Err):
            return listed
        return Ok(build_calendar_month(listed.ok_value, year, month, selected=selected, tz=tz))

    async def get_entries_on(
        self, day: date, tz: tzinfo | None = None
    ) -> Result[list[WritingEntry], str]:
        listed = await self._entries.list_entries()
        if isinstance(listed, Err):
            return listed
        return Ok(entries_on(listed.ok_value, day, tz))
