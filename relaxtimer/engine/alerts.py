"""Due alerts: one-shot pulses and the repeating due cadence."""

import asyncio
import logging
from typing import Awaitable, Callable, Set

from telegram.error import TelegramError
from telegram.ext import ContextTypes, Job, JobQueue

from relaxtimer.config import Config
from relaxtimer.utils.constants import DUE_ALERT_TEXT

logger = logging.getLogger(__name__)

Notifier = Callable[[str], Awaitable[object]]


class AlertEngine:
    """Sends alert pulses and runs at most one repeating due cadence.

    A pulse is a chat message with notification enabled, which is what makes
    the phone sound and vibrate. Delivery is best effort: if there is no
    notifier, no event loop or the send fails, the due marker on the board
    remains the only signal.
    """

    def __init__(
        self,
        notify: Notifier | None = None,
        job_queue: JobQueue | None = None,
        interval: float | None = None,
        name: str = "due-cadence",
    ):
        self.notify = notify
        self.job_queue = job_queue
        self.interval = interval if interval is not None else Config.DUE_ALERT_INTERVAL
        self.name = name
        self.should_continue: Callable[[], bool] | None = None
        self.describe: Callable[[], str] | None = None
        self.pulse_count = 0
        self._job: Job | None = None
        self._cadence_running = False
        self._pending: Set[asyncio.Task] = set()

    @property
    def cadence_running(self) -> bool:
        return self._cadence_running

    def pulse(self, text: str | None = None) -> None:
        """Fire one alert. Never raises."""
        self.pulse_count += 1

        if self.notify is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; alert pulse is visual-only")
            return

        task = loop.create_task(self._deliver(text or self._due_text()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _due_text(self) -> str:
        if self.describe is None:
            return DUE_ALERT_TEXT
        try:
            return self.describe() or DUE_ALERT_TEXT
        except Exception as e:
            logger.error(f"Alert text error: {e}")
            return DUE_ALERT_TEXT

    async def _deliver(self, text: str) -> None:
        try:
            await self.notify(text)  # type: ignore[misc]
        except TelegramError as e:
            logger.warning(f"Failed to deliver alert: {e}")
        except Exception as e:
            logger.error(f"Alert notifier error: {e}")

    def start_due_cadence(self, interval: float | None = None) -> None:
        """Start repeating pulses. No-op if already running."""
        if self._cadence_running:
            return

        self._cadence_running = True
        every = interval if interval is not None else self.interval

        if self.job_queue is None:
            logger.debug("No job queue; due cadence is visual-only")
            return

        self._job = self.job_queue.run_repeating(
            self._cadence_job,
            interval=every,
            first=every,
            name=self.name,
        )
        logger.info(f"Due cadence started (every {every}s)")

    def stop_due_cadence(self) -> None:
        """Stop repeating pulses. No-op if already stopped."""
        if not self._cadence_running:
            return

        self._cadence_running = False
        if self._job is not None:
            self._job.schedule_removal()
            self._job = None
            logger.info("Due cadence stopped")

    async def _cadence_job(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Job callback: re-check the due set, then pulse."""
        if self.should_continue is not None and not self.should_continue():
            self.stop_due_cadence()
            return
        self.pulse()

    async def drain(self) -> None:
        """Wait for in-flight deliveries (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
