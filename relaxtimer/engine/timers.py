"""Relaxant timer state machine.

A timer moves Bolus -> Maintenance only through an explicit top-up. Whether
it is due is derived from the wall clock on every read, so time spent with
the host asleep is accounted for as soon as it wakes.
"""

import logging
import secrets
from typing import TYPE_CHECKING, Callable, List

from relaxtimer.db.models import Timer
from relaxtimer.engine.catalog import find_agent, get_agent
from relaxtimer.utils.constants import (
    MAX_DURATION_MS,
    MIN_DURATION_MS,
    PHASE_BOLUS,
    PHASE_MAINTENANCE,
    TOP_UP_ALERT_TEXT,
)
from relaxtimer.utils.time_utils import minutes_to_ms, now_ms

if TYPE_CHECKING:
    from relaxtimer.engine.alerts import AlertEngine

logger = logging.getLogger(__name__)


def clamp_duration_ms(ms: float) -> int:
    """Clamp a target duration to [1, 240] minutes."""
    return int(min(MAX_DURATION_MS, max(MIN_DURATION_MS, ms)))


def elapsed_ms(timer: Timer, now: int) -> int:
    return now - timer.started_at


def remaining_ms(timer: Timer, now: int) -> int:
    """Signed time left in the current cycle; negative means overdue."""
    return timer.target_duration_ms - elapsed_ms(timer, now)


def is_due(timer: Timer, now: int) -> bool:
    return remaining_ms(timer, now) <= 0


def progress(timer: Timer, now: int) -> float:
    """Fraction of the current cycle elapsed, clamped to [0, 1]."""
    if timer.target_duration_ms <= 0:
        return 1.0
    return min(1.0, max(0.0, elapsed_ms(timer, now) / timer.target_duration_ms))


def new_timer_id() -> str:
    return secrets.token_hex(4)


class TimerBoard:
    """Owns the timer collection for one chat, most recent first."""

    def __init__(
        self,
        alerts: "AlertEngine | None" = None,
        clock: Callable[[], int] = now_ms,
        timers: List[Timer] | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self.alerts = alerts
        self.clock = clock
        self.timers: List[Timer] = list(timers or [])
        self.on_change = on_change

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()

    # Queries

    def get(self, timer_id: str) -> Timer | None:
        for timer in self.timers:
            if timer.id == timer_id:
                return timer
        return None

    def latest_for_agent(self, agent_key: str) -> Timer | None:
        """Most recently started timer for an agent."""
        for timer in self.timers:
            if timer.agent == agent_key:
                return timer
        return None

    def due_timers(self, now: int | None = None) -> List[Timer]:
        if now is None:
            now = self.clock()
        return [t for t in self.timers if is_due(t, now)]

    def alerting_timers(self, now: int | None = None) -> List[Timer]:
        """Due timers that have not been silenced."""
        return [t for t in self.due_timers(now) if not t.silenced]

    def replace(self, timers: List[Timer]) -> None:
        """Swap in a restored collection. Does not trigger on_change."""
        self.timers = list(timers)

    # Mutations

    def start_bolus(self, agent_key: str, minutes: float | None = None) -> str:
        """Start a bolus timer and return its id.

        Args:
            agent_key: Catalog key of the agent
            minutes: Optional target override, clamped to [1, 240]
        """
        agent = get_agent(agent_key)
        now = self.clock()

        if minutes is None:
            minutes = agent.bolus_minutes_default

        timer = Timer(
            id=new_timer_id(),
            agent=agent.key,
            phase=PHASE_BOLUS,
            started_at=now,
            first_dose_at=now,
            target_duration_ms=clamp_duration_ms(minutes_to_ms(minutes)),
            silenced=False,
            top_up_count=0,
        )
        self.timers.insert(0, timer)

        logger.info(
            f"Started {agent.label} bolus timer {timer.id} "
            f"({timer.target_duration_ms // 60_000} min)"
        )
        self._changed()
        return timer.id

    def top_up_and_restart(self, timer_id: str, minutes: float | None = None) -> bool:
        """Log a maintenance dose and restart the clock.

        Idempotent with respect to phase: repeated top-ups keep restarting.
        """
        timer = self.get(timer_id)
        if timer is None:
            logger.warning(f"Top-up for unknown timer {timer_id} ignored")
            return False

        if minutes is None:
            agent = find_agent(timer.agent)
            if agent is None:
                logger.error(f"Timer {timer.id} references unknown agent {timer.agent!r}")
                return False
            minutes = agent.maint_minutes_default

        timer.phase = PHASE_MAINTENANCE
        timer.started_at = self.clock()
        timer.target_duration_ms = clamp_duration_ms(minutes_to_ms(minutes))
        timer.top_up_count += 1
        timer.silenced = False

        logger.info(f"Top-up #{timer.top_up_count} on timer {timer.id} ({timer.agent})")

        # Confirmation pulse, separate from the due cadence
        if self.alerts:
            self.alerts.pulse(TOP_UP_ALERT_TEXT)

        self._changed()
        return True

    def nudge(self, timer_id: str, delta_minutes: float) -> bool:
        """Adjust the target by delta_minutes without restarting."""
        timer = self.get(timer_id)
        if timer is None:
            logger.warning(f"Nudge for unknown timer {timer_id} ignored")
            return False

        timer.target_duration_ms = clamp_duration_ms(
            timer.target_duration_ms + minutes_to_ms(delta_minutes)
        )
        self._changed()
        return True

    def silence(self, timer_id: str) -> bool:
        """Suppress repeat alerts until the next restart."""
        timer = self.get(timer_id)
        if timer is None:
            logger.warning(f"Silence for unknown timer {timer_id} ignored")
            return False

        timer.silenced = True
        self._changed()
        return True

    def remove(self, timer_id: str) -> bool:
        timer = self.get(timer_id)
        if timer is None:
            logger.warning(f"Remove for unknown timer {timer_id} ignored")
            return False

        self.timers.remove(timer)
        logger.info(f"Removed timer {timer.id} ({timer.agent})")
        self._changed()
        return True
