"""iCalendar export of planned activities."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

from icalendar import Calendar, Event

from writetrack.models.planning import PlannedActivity

PRODUCT_ID = "-//WriteTrack//EN"


def activity_window(activity: PlannedActivity) -> tuple[datetime, datetime]:
    """Start/end instants. Start times are read as UTC wall-clock times."""
    hour, minute = (int(part) for part in activity.start_time.split(":"))
    start = datetime.combine(activity.date, time(hour, minute), tzinfo=UTC)
    return start, start + timedelta(minutes=activity.duration_minutes)


def _event(activity: PlannedActivity, stamp: datetime) -> Event:
    start, end = activity_window(activity)
    event = Event()
    event.add("uid", f"{activity.id}@writetrack.app")
    event.add("dtstamp", stamp)
    event.add("dtstart", start)
    event.add("dtend", end)
    event.add("summary", f"{activity.activity_type.value}: {activity.title}")
    event.add("description", activity.notes)
    event.add("status", "CONFIRMED")
    return event


def build_calendar(activities: list[PlannedActivity], *, now: datetime | None = None) -> str:
    """Serialize *activities* as a VCALENDAR document (CRLF lines, folded)."""
    stamp = (now or datetime.now(UTC)).astimezone(UTC)
    calendar = Calendar()
    calendar.add("prodid", PRODUCT_ID)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "PUBLISH")
    for activity in activities:
        calendar.add_component(_event(activity, stamp))
    return calendar.to_ical().decode("utf-8")


def plan_filename(start: date, end: date | None = None) -> str:
    if end is None or end == start:
        return f"writing-plan-{start.isoformat()}.ics"
    return f"writing-plan-{start.isoformat()}-to-{end.isoformat()}.ics"
