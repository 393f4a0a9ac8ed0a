"""Main entry point for the relaxant timer bot."""

import logging
import sys
from functools import partial

from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from relaxtimer.bot.callbacks import callback_router
from relaxtimer.bot.handlers import (
    agents_command,
    bolus_command,
    drugs_command,
    give_command,
    help_command,
    la_command,
    patient_command,
    quick_command,
    start_command,
    timers_command,
)
from relaxtimer.bot.live_board import build_session
from relaxtimer.config import Config
from relaxtimer.db.kv import SqliteKeyValueStore
from relaxtimer.db.migrations import run_migrations
from relaxtimer.engine.session import SessionRegistry
from relaxtimer.utils.error_handler import error_handler

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


async def post_init(application: Application) -> None:
    """Initialize bot resources after application is created."""
    # Initialize database
    await run_migrations(Config.DATABASE_PATH)

    kv = SqliteKeyValueStore(Config.DATABASE_PATH)
    await kv.connect()
    application.bot_data["kv"] = kv

    registry = SessionRegistry(
        kv,
        partial(build_session, application.bot, kv, job_queue=application.job_queue),
    )
    application.bot_data["sessions"] = registry

    if application.job_queue is None:
        logger.warning("Job queue unavailable; timers will not tick or repeat alerts")

    # Resume timers (and overdue alerts) that were running before a restart
    restored = await registry.restore_all()
    if restored:
        logger.info(f"Startup recovery: resumed timers in {restored} chat(s)")

    logger.info("Relaxant timer bot initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    registry: SessionRegistry | None = application.bot_data.get("sessions")
    if registry:
        await registry.close()

    kv: SqliteKeyValueStore | None = application.bot_data.get("kv")
    if kv:
        await kv.close()

    logger.info("Relaxant timer bot shut down")


def main() -> None:
    """Start the bot."""
    # Validate configuration
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Create application
    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Commands
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("agents", agents_command))
    application.add_handler(CommandHandler("bolus", bolus_command))
    application.add_handler(CommandHandler("give", give_command))
    application.add_handler(CommandHandler("timers", timers_command))
    application.add_handler(CommandHandler("patient", patient_command))
    application.add_handler(CommandHandler("la", la_command))
    application.add_handler(CommandHandler("drugs", drugs_command))
    application.add_handler(CommandHandler("quick", quick_command))

    # Callback queries (buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    # Error handler
    application.add_error_handler(error_handler)

    # Start the bot
    logger.info("Starting relaxant timer bot...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
