"""Tick loop: recompute due state and drive the alert engine."""

import logging
from typing import Awaitable, Callable, List, Set

from telegram.ext import ContextTypes, Job, JobQueue

from relaxtimer.config import Config
from relaxtimer.db.models import Timer
from relaxtimer.engine.alerts import AlertEngine
from relaxtimer.engine.timers import TimerBoard

logger = logging.getLogger(__name__)


class TickLoop:
    """Repeating job that feeds the alert engine.

    Each tick:
    1. Finds timers that are due and not silenced
    2. Pulses once for any that just became due
    3. Starts or stops the due cadence to match
    4. Stops itself once the board is empty
    """

    def __init__(
        self,
        board: TimerBoard,
        alerts: AlertEngine,
        job_queue: JobQueue | None = None,
        interval: float | None = None,
        on_tick: Callable[[], Awaitable[None]] | None = None,
        name: str = "tick",
    ):
        self.board = board
        self.alerts = alerts
        self.job_queue = job_queue
        self.interval = interval if interval is not None else Config.TICK_INTERVAL
        self.on_tick = on_tick
        self.name = name
        self._alerting_ids: Set[str] = set()
        self._job: Job | None = None

    @property
    def running(self) -> bool:
        return self._job is not None

    def tick(self, now: int | None = None) -> List[Timer]:
        """Run one tick. Returns the timers that became due on this tick."""
        alerting = self.board.alerting_timers(now)
        ids = {t.id for t in alerting}
        newly_due = [t for t in alerting if t.id not in self._alerting_ids]
        self._alerting_ids = ids

        if newly_due:
            logger.info(f"{len(newly_due)} timer(s) became due")
            self.alerts.pulse()

        if alerting:
            self.alerts.start_due_cadence()
        else:
            self.alerts.stop_due_cadence()

        if not self.board.timers:
            self.stop()

        return newly_due

    def start(self) -> None:
        """Schedule the repeating tick. No-op if already running."""
        if self._job is not None or self.job_queue is None:
            return

        self._job = self.job_queue.run_repeating(
            self._tick_job,
            interval=self.interval,
            first=self.interval,
            name=self.name,
        )
        logger.debug(f"Tick loop {self.name} started (every {self.interval}s)")

    def stop(self) -> None:
        """Cancel the repeating tick. No-op if not running."""
        if self._job is None:
            return

        self._job.schedule_removal()
        self._job = None
        logger.debug(f"Tick loop {self.name} stopped")

    async def _tick_job(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Job callback for the tick."""
        self.tick()
        if self.on_tick:
            await self.on_tick()
