"""Session timer: stopwatch with pause/resume and an optional work goal."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import StrEnum

logger = logging.getLogger(__name__)

type Clock = Callable[[], float]
type Notify = Callable[[], None]
type StopNotify = Callable[[int], None]


class TimerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


def format_clock(total_seconds: float) -> str:
    """Format seconds as ``HH:MM:SS``."""
    seconds = max(int(total_seconds), 0)
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def round_minutes(total_seconds: float) -> int:
    """Round seconds to the nearest whole minute, halves rounding up."""
    return int(total_seconds / 60 + 0.5)


class SessionTimer:
    """Wall-clock based stopwatch.

    Accumulated time is folded in only at pause and stop, from clock deltas,
    so the result does not depend on how often ``tick`` runs. ``tick`` exists
    for display refresh and goal checks.

    Actions invalid for the current state are no-ops that return ``False``
    (or ``None`` for ``stop``).
    """

    def __init__(
        self,
        *,
        clock: Clock = time.monotonic,
        on_pause: Notify | None = None,
        on_resume: Notify | None = None,
        on_stop: StopNotify | None = None,
        on_goal_reached: Notify | None = None,
        on_tick: Callable[[float], None] | None = None,
    ) -> None:
        self._clock = clock
        self.on_pause = on_pause
        self.on_resume = on_resume
        self.on_stop = on_stop
        self.on_goal_reached = on_goal_reached
        self.on_tick = on_tick

        self._state = TimerState.IDLE
        self._accumulated = 0.0
        self._started_at = 0.0
        self._goal_seconds: float | None = None
        self._goal_reached = False
        self._fullscreen = False

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is TimerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._state is TimerState.PAUSED

    @property
    def goal_seconds(self) -> float | None:
        return self._goal_seconds

    @property
    def goal_reached(self) -> bool:
        return self._goal_reached

    @property
    def fullscreen(self) -> bool:
        return self._fullscreen

    @property
    def elapsed_seconds(self) -> float:
        """Accumulated time plus the in-progress running segment."""
        if self._state is TimerState.RUNNING:
            return self._accumulated + max(self._clock() - self._started_at, 0.0)
        return self._accumulated

    @property
    def remaining_seconds(self) -> float | None:
        if self._goal_seconds is None:
            return None
        return self._goal_seconds - self.elapsed_seconds

    def start(self) -> bool:
        if self._state is not TimerState.IDLE:
            return False
        self._accumulated = 0.0
        self._goal_reached = False
        self._started_at = self._clock()
        self._state = TimerState.RUNNING
        logger.debug("Timer started")
        return True

    def pause(self) -> bool:
        if self._state is not TimerState.RUNNING:
            return False
        self._accumulated += max(self._clock() - self._started_at, 0.0)
        self._state = TimerState.PAUSED
        logger.debug("Timer paused at %.1fs", self._accumulated)
        if self.on_pause is not None:
            self.on_pause()
        return True

    def resume(self) -> bool:
        if self._state is not TimerState.PAUSED:
            return False
        self._started_at = self._clock()
        self._state = TimerState.RUNNING
        logger.debug("Timer resumed")
        if self.on_resume is not None:
            self.on_resume()
        return True

    def toggle_pause(self) -> bool:
        if self._state is TimerState.RUNNING:
            return self.pause()
        return self.resume()

    def stop(self) -> int | None:
        """Stop and report total active time in whole minutes."""
        if self._state is TimerState.IDLE:
            return None
        minutes = round_minutes(self.elapsed_seconds)
        self._reset()
        logger.debug("Timer stopped at %d minute(s)", minutes)
        if self.on_stop is not None:
            self.on_stop(minutes)
        return minutes

    def set_goal(self, minutes: float | None) -> None:
        """Set or replace the goal; ``None`` or a non-positive value clears it."""
        if minutes is None or minutes <= 0:
            self._goal_seconds = None
        else:
            self._goal_seconds = float(minutes) * 60
        self._goal_reached = False

    def extend_goal(self, minutes: float) -> None:
        """Add to the goal and re-arm the overshoot notification."""
        self._goal_seconds = (self._goal_seconds or 0.0) + float(minutes) * 60
        self._goal_reached = False

    def tick(self) -> bool:
        """Refresh display and check the goal. Returns True when the goal fires."""
        if self._state is not TimerState.RUNNING:
            return False
        elapsed = self.elapsed_seconds
        if self.on_tick is not None:
            self.on_tick(elapsed)
        if self._goal_seconds is None or self._goal_reached:
            return False
        if elapsed < self._goal_seconds:
            return False
        self._goal_reached = True
        logger.info("Goal of %s reached", format_clock(self._goal_seconds))
        if self.on_goal_reached is not None:
            self.on_goal_reached()
        return True

    def toggle_fullscreen(self) -> bool:
        self._fullscreen = not self._fullscreen
        return self._fullscreen

    async def run_ticker(self, interval: float = 1.0) -> None:
        """Tick every ``interval`` seconds until the timer is stopped.

        Sleeps without ticking while paused.
        """
        while self._state is not TimerState.IDLE:
            await asyncio.sleep(interval)
            self.tick()

    def _reset(self) -> None:
        self._state = TimerState.IDLE
        self._accumulated = 0.0
        self._started_at = 0.0
        self._goal_seconds = None
        self._goal_reached = False
