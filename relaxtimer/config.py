"""Configuration management from environment variables."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/relaxtimer.db"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Display
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

    # Engine (seconds)
    TICK_INTERVAL: float = float(os.getenv("TICK_INTERVAL", "1.0"))
    DUE_ALERT_INTERVAL: float = float(os.getenv("DUE_ALERT_INTERVAL", "10"))
    BOARD_REFRESH_INTERVAL: float = float(os.getenv("BOARD_REFRESH_INTERVAL", "15"))

    # Raise on unknown agent keys instead of logging and ignoring them
    STRICT_AGENTS: bool = _env_flag("STRICT_AGENTS")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.TELEGRAM_BOT_TOKEN:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        for name in ("TICK_INTERVAL", "DUE_ALERT_INTERVAL", "BOARD_REFRESH_INTERVAL"):
            if getattr(cls, name) <= 0:
                raise ValueError(f"{name} must be positive")

        try:
            ZoneInfo(cls.TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown TIMEZONE: {cls.TIMEZONE}")

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
