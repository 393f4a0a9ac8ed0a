"""Per-chat wiring of board, store, alerts, channel and tick loop."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Set

from telegram.ext import JobQueue

from relaxtimer.config import Config
from relaxtimer.db.kv import KeyValueStore
from relaxtimer.db.models import GiveEvent
from relaxtimer.db.timer_store import PatientStore, TimerStore
from relaxtimer.engine.alerts import AlertEngine, Notifier
from relaxtimer.engine.catalog import UnknownAgentError, get_agent
from relaxtimer.engine.channel import TriggerChannel
from relaxtimer.engine.ticker import TickLoop
from relaxtimer.engine.timers import TimerBoard
from relaxtimer.utils.constants import TIMER_STORE_KEY
from relaxtimer.utils.time_utils import now_ms

logger = logging.getLogger(__name__)


class RelaxantSession:
    """The timer subsystem for one chat.

    Dosing code talks to it only through ``channel.publish(agent_key)``.
    """

    def __init__(
        self,
        chat_id: int,
        kv: KeyValueStore,
        notify: Notifier | None = None,
        job_queue: JobQueue | None = None,
        clock: Callable[[], int] = now_ms,
        on_tick: Callable[[], Awaitable[None]] | None = None,
    ):
        self.chat_id = chat_id
        self.store = TimerStore(kv, chat_id)
        self.patients = PatientStore(kv, chat_id)
        self.channel = TriggerChannel(clock=clock)
        self.alerts = AlertEngine(
            notify=notify, job_queue=job_queue, name=f"due-cadence:{chat_id}"
        )
        self.board = TimerBoard(alerts=self.alerts, clock=clock, on_change=self._on_change)
        self.ticker = TickLoop(
            self.board, self.alerts, job_queue=job_queue, on_tick=on_tick, name=f"tick:{chat_id}"
        )
        self.alerts.should_continue = lambda: bool(self.board.alerting_timers())
        self._unsubscribe = self.channel.subscribe(self.handle_give)
        self._pending: Set[asyncio.Task] = set()
        # Presentation attached by the bot layer (LiveBoard)
        self.view: Any = None

    def handle_give(self, event: GiveEvent) -> str | None:
        """Start a bolus, or top up the agent's latest timer.

        Returns the affected timer id, or None for an unknown agent.
        """
        try:
            agent = get_agent(event.agent_key)
        except UnknownAgentError:
            logger.error(f"Give event for unknown agent {event.agent_key!r}")
            if Config.STRICT_AGENTS:
                raise
            return None

        existing = self.board.latest_for_agent(agent.key)
        if existing is not None:
            self.board.top_up_and_restart(existing.id)
            return existing.id

        return self.board.start_bolus(agent.key)

    def _on_change(self) -> None:
        # Re-evaluate due state immediately so silence/remove stop the cadence now
        self.ticker.tick()
        if self.board.timers:
            self.ticker.start()
        self._schedule_save()

    def _schedule_save(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop; timers for chat {self.chat_id} not saved")
            return

        task = loop.create_task(self.store.save(list(self.board.timers)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait for in-flight saves and alert deliveries."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        await self.alerts.drain()

    async def restore(self) -> int:
        """Load persisted timers and resume ticking. Returns the count."""
        timers = await self.store.load()
        self.board.replace(timers)
        if timers:
            self.ticker.start()
            logger.info(f"Restored {len(timers)} timer(s) for chat {self.chat_id}")
        return len(timers)

    def close(self) -> None:
        self._unsubscribe()
        self.ticker.stop()
        self.alerts.stop_due_cadence()


SessionFactory = Callable[[int], RelaxantSession]


class SessionRegistry:
    """Creates sessions lazily, one per chat."""

    def __init__(self, kv: KeyValueStore, factory: SessionFactory):
        self.kv = kv
        self.factory = factory
        self.sessions: Dict[int, RelaxantSession] = {}

    async def get(self, chat_id: int) -> RelaxantSession:
        session = self.sessions.get(chat_id)
        if session is None:
            session = self.factory(chat_id)
            self.sessions[chat_id] = session
            await session.restore()
        return session

    async def restore_all(self) -> int:
        """Revive every chat with persisted timers. Returns the chat count."""
        prefix = f"{TIMER_STORE_KEY}:"
        restored = 0
        for key in await self.kv.keys(prefix):
            try:
                chat_id = int(key[len(prefix):])
            except ValueError:
                logger.warning(f"Skipping unexpected storage key {key!r}")
                continue
            await self.get(chat_id)
            restored += 1
        return restored

    async def close(self) -> None:
        for session in self.sessions.values():
            session.close()
            await session.flush()
        self.sessions.clear()
