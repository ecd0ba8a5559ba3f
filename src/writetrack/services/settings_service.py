"""Timer settings service — per-activity default goal minutes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from writetrack.data.local_store import TIMER_SETTINGS_KEY
from writetrack.models.entries import ActivityType
from writetrack.models.storage import DEFAULT_TIMER_MINUTES, TimerSettings

if TYPE_CHECKING:
    from writetrack.data.local_store import LocalStorage

logger = logging.getLogger(__name__)


def _coerce_minutes(raw: object) -> dict[ActivityType, int]:
    minutes = dict(DEFAULT_TIMER_MINUTES)
    if not isinstance(raw, dict):
        return minutes
    for key, value in raw.items():
        try:
            activity = ActivityType(key)
        except ValueError:
            continue
        if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
            continue
        minutes[activity] = int(value)
    return minutes


class SettingsService:
    """Reads and writes the timer settings slot."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    async def get_timer_settings(self) -> TimerSettings:
        raw = await self._storage.get_json(TIMER_SETTINGS_KEY, default={})
        return TimerSettings(minutes=_coerce_minutes(raw))

    async def set_goal_minutes(
        self, activity_type: ActivityType, minutes: int
    ) -> Result[TimerSettings, str]:
        if minutes < 0:
            return Err("Goal minutes cannot be negative")
        settings = await self.get_timer_settings()
        settings.minutes[activity_type] = minutes
        try:
            await self._storage.set_json(
                TIMER_SETTINGS_KEY,
                {activity.value: value for activity, value in settings.minutes.items()},
            )
        except Exception as exc:
            logger.exception("Failed to store timer settings")
            return Err(f"Failed to save settings: {exc}")
        return Ok(settings)

    async def reset(self) -> TimerSettings:
        await self._storage.remove(TIMER_SETTINGS_KEY)
        return TimerSettings()
