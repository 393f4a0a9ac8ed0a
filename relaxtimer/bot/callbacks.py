"""Callback query handlers for inline buttons."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from relaxtimer.bot.handlers import get_session, show_board
from relaxtimer.engine.catalog import find_agent
from relaxtimer.engine.session import RelaxantSession

logger = logging.getLogger(__name__)


async def refresh_board(session: RelaxantSession, query=None) -> None:
    """Re-render the board, adopting the message the button was pressed on."""
    if session.view is not None:
        if query is not None and query.message:
            session.view.adopt(query.message.message_id)
        await session.view.refresh(force=True)


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to the timer board."""
    if not update.callback_query:
        return

    query = update.callback_query
    data = query.data

    if not data:
        return

    session = await get_session(update, context)
    if session is None:
        await query.answer()
        return

    # Parse callback data
    parts = data.split(":")
    action = parts[0]

    if action == "bolus" and len(parts) == 2:
        agent = find_agent(parts[1])
        if agent is None:
            await query.answer("Unknown agent")
            return
        session.board.start_bolus(agent.key)
        await query.answer(f"{agent.label} bolus started")
        await show_board(session)
        return

    if action == "give" and len(parts) == 2:
        session.channel.publish(parts[1])
        await query.answer("Dose logged")
        await show_board(session)
        return

    if action == "refresh":
        await query.answer()
        await refresh_board(session, query)
        return

    if len(parts) < 2:
        await query.answer("Unknown action")
        return

    timer_id = parts[1]

    if action == "topup":
        ok = session.board.top_up_and_restart(timer_id)
        await query.answer("Restarted (maintenance)" if ok else "Timer not found")

    elif action == "nudge" and len(parts) == 3:
        try:
            delta = int(parts[2])
        except ValueError:
            await query.answer("Unknown action")
            return
        ok = session.board.nudge(timer_id, delta)
        await query.answer(f"{delta:+d} min" if ok else "Timer not found")

    elif action == "silence":
        ok = session.board.silence(timer_id)
        await query.answer("Silenced" if ok else "Timer not found")

    elif action == "remove":
        ok = session.board.remove(timer_id)
        await query.answer("Removed" if ok else "Timer not found")

    else:
        logger.debug(f"Unknown callback data: {data}")
        await query.answer("Unknown action")
        return

    await refresh_board(session, query)
