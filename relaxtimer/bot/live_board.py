"""Live timer board message and per-chat session construction."""

import logging
from typing import Callable

from telegram import Bot
from telegram.error import BadRequest, TelegramError
from telegram.ext import JobQueue

from relaxtimer.bot.formatters import format_board, format_due_alert
from relaxtimer.bot.keyboards import board_keyboard
from relaxtimer.config import Config
from relaxtimer.db.kv import KeyValueStore
from relaxtimer.engine.session import RelaxantSession
from relaxtimer.utils.time_utils import now_ms

logger = logging.getLogger(__name__)


class LiveBoard:
    """The most recent /timers message in a chat, edited as timers tick."""

    def __init__(
        self,
        bot: Bot,
        session: RelaxantSession,
        refresh_interval: float | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.bot = bot
        self.session = session
        self.refresh_interval = (
            refresh_interval if refresh_interval is not None else Config.BOARD_REFRESH_INTERVAL
        )
        self.clock = clock
        self.message_id: int | None = None
        self._last_text: str | None = None
        self._last_edit_at = 0

    async def show(self) -> None:
        """Post a fresh board message and track it."""
        now = self.clock()
        text = format_board(self.session.board.timers, now)
        message = await self.bot.send_message(
            chat_id=self.session.chat_id,
            text=text,
            parse_mode="HTML",
            reply_markup=board_keyboard(self.session.board.timers, now),
        )
        self.message_id = message.message_id
        self._last_text = text
        self._last_edit_at = now

    def adopt(self, message_id: int) -> None:
        """Track an existing board message (e.g. one whose button was pressed)."""
        if message_id != self.message_id:
            self.message_id = message_id
            self._last_text = None

    async def refresh(self, force: bool = False) -> None:
        """Edit the tracked message if it is stale and the text changed."""
        if self.message_id is None:
            return

        now = self.clock()
        if not force and now - self._last_edit_at < self.refresh_interval * 1000:
            return

        text = format_board(self.session.board.timers, now)
        if text == self._last_text:
            return

        try:
            await self.bot.edit_message_text(
                chat_id=self.session.chat_id,
                message_id=self.message_id,
                text=text,
                parse_mode="HTML",
                reply_markup=board_keyboard(self.session.board.timers, now),
            )
            self._last_text = text
            self._last_edit_at = now
        except BadRequest as e:
            if "not modified" in str(e).lower():
                return
            # Message deleted or too old to edit; stop tracking it
            logger.warning(f"Board message {self.message_id} no longer editable: {e}")
            self.message_id = None
        except TelegramError as e:
            logger.warning(f"Failed to refresh board in chat {self.session.chat_id}: {e}")


def build_session(
    bot: Bot,
    kv: KeyValueStore,
    chat_id: int,
    job_queue: JobQueue | None,
    clock: Callable[[], int] = now_ms,
) -> RelaxantSession:
    """Create a chat session whose alerts go to the chat and whose ticks refresh its board."""

    async def notify(text: str) -> None:
        await bot.send_message(chat_id=chat_id, text=text, parse_mode="HTML")

    session = RelaxantSession(
        chat_id=chat_id, kv=kv, notify=notify, job_queue=job_queue, clock=clock
    )
    board = LiveBoard(bot, session, clock=clock)
    session.ticker.on_tick = board.refresh
    session.alerts.describe = lambda: format_due_alert(
        session.board.alerting_timers(), clock()
    )
    session.view = board
    return session
