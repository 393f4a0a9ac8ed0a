"""Global error handler for the bot."""

import logging
import traceback

from telegram import Update
from telegram.ext import ContextTypes

from relaxtimer.engine.catalog import UnknownAgentError

logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in the bot."""
    # Log the error
    logger.error("Exception while handling an update:", exc_info=context.error)

    # Log full traceback
    if context.error is not None:
        tb_string = "".join(
            traceback.format_exception(None, context.error, context.error.__traceback__)
        )
        logger.error(f"Traceback:\n{tb_string}")

    # Try to notify the user
    if isinstance(update, Update) and update.effective_message:
        try:
            error_message = (
                "😅 Oops! Something went wrong.\n\n"
                "Your timers are unaffected. Use /timers to check them, or /help."
            )

            error = context.error

            if isinstance(error, UnknownAgentError):
                error_message = (
                    f"❌ Unknown agent: {error.args[0] if error.args else '?'}.\n\n"
                    "Use /agents to see the supported relaxants."
                )
            elif "Timeout" in str(error):
                error_message = "⏱️ Request timed out.\n\nPlease try again in a moment."
            elif "Network" in str(error):
                error_message = "🌐 Network error.\n\nPlease check your connection and try again."

            await update.effective_message.reply_text(error_message)

        except Exception as e:
            logger.error(f"Failed to send error message to user: {e}")
