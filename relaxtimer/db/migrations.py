"""Database migration runner."""

import logging
from pathlib import Path

import aiosqlite

from relaxtimer.utils.constants import TIMER_STORE_KEY

logger = logging.getLogger(__name__)

# Timer records written under older key versions use an incompatible layout
SUPERSEDED_TIMER_KEYS = ("relaxant_timers_v1", "relaxant_timers_v2")


async def init_database(db_path: Path) -> None:
    """Create the kv table if needed."""
    schema_path = Path(__file__).parent / "schema.sql"

    async with aiosqlite.connect(db_path) as db:
        with open(schema_path) as f:
            schema_sql = f.read()

        await db.executescript(schema_sql)
        await db.commit()

        logger.info(f"Database initialized at {db_path}")


async def drop_superseded_timers(db_path: Path) -> int:
    """Delete timer records stored under superseded key versions.

    Returns the number of rows removed.
    """
    removed = 0
    async with aiosqlite.connect(db_path) as db:
        for prefix in SUPERSEDED_TIMER_KEYS:
            cursor = await db.execute(
                "DELETE FROM kv WHERE key = ? OR substr(key, 1, ?) = ?",
                (prefix, len(prefix) + 1, f"{prefix}:"),
            )
            removed += cursor.rowcount
        await db.commit()

    if removed:
        logger.info(f"Dropped {removed} timer record(s) older than {TIMER_STORE_KEY}")
    return removed


async def run_migrations(db_path: Path) -> None:
    """Run any pending migrations.

    Stored values are versioned by key, so a layout change only needs the
    old keys cleared out.
    """
    await init_database(db_path)
    await drop_superseded_timers(db_path)
