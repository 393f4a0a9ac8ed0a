"""Inline keyboard builders."""

from typing import List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from relaxtimer.db.models import Timer
from relaxtimer.engine.catalog import find_agent, list_agents
from relaxtimer.engine.timers import is_due
from relaxtimer.utils.constants import NUDGE_STEP_MINUTES


def start_agents_keyboard() -> InlineKeyboardMarkup:
    """One "Start <Agent>" button per agent."""
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(f"Start {a.label}", callback_data=f"bolus:{a.key}")]
            for a in list_agents()
        ]
    )


def give_keyboard(agent_key: str) -> InlineKeyboardMarkup:
    """Keyboard under a dose suggestion: log a further dose (tops up the timer)."""
    agent = find_agent(agent_key)
    label = agent.label if agent else agent_key
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(f"Log another {label} dose", callback_data=f"give:{agent_key}")]]
    )


def board_keyboard(timers: List[Timer], now: int) -> InlineKeyboardMarkup:
    """Controls for every timer on the board."""
    rows: List[List[InlineKeyboardButton]] = []

    for timer in timers:
        agent = find_agent(timer.agent)
        label = agent.label if agent else timer.agent

        rows.append(
            [
                InlineKeyboardButton(
                    f"Top up now & Restart · {label}", callback_data=f"topup:{timer.id}"
                )
            ]
        )

        controls = [
            InlineKeyboardButton(
                f"+{NUDGE_STEP_MINUTES} min",
                callback_data=f"nudge:{timer.id}:{NUDGE_STEP_MINUTES}",
            ),
            InlineKeyboardButton(
                f"-{NUDGE_STEP_MINUTES} min",
                callback_data=f"nudge:{timer.id}:-{NUDGE_STEP_MINUTES}",
            ),
        ]
        if is_due(timer, now) and not timer.silenced:
            controls.append(InlineKeyboardButton("🔕 Silence", callback_data=f"silence:{timer.id}"))
        controls.append(InlineKeyboardButton("✖ Remove", callback_data=f"remove:{timer.id}"))
        rows.append(controls)

    rows.append([InlineKeyboardButton("⟳ Refresh", callback_data="refresh")])
    return InlineKeyboardMarkup(rows)
