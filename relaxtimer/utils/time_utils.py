"""Time and timezone utilities."""

import time
from datetime import datetime
from zoneinfo import ZoneInfo


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def from_epoch_ms(ms: int, tz: str) -> datetime:
    """Convert epoch milliseconds to an aware datetime in the given timezone."""
    return datetime.fromtimestamp(ms / 1000, tz=ZoneInfo(tz))


def minutes_to_ms(minutes: float) -> int:
    return int(round(minutes * 60_000))


def format_countdown(ms: int) -> str:
    """Format a signed duration as mm:ss.

    Negative values (overdue) get a leading minus sign. Minutes are not
    wrapped into hours.

    Examples:
        1_860_000 -> "31:00"
        -5_000 -> "-00:05"
        -65_400 -> "-01:05"
    """
    negative = ms < 0
    total_seconds = abs(ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{'-' if negative else ''}{minutes:02d}:{seconds:02d}"


def format_duration(minutes: int) -> str:
    """Format minutes into a human-readable duration.

    Examples:
        1 -> "1 minute"
        15 -> "15 minutes"
        60 -> "1 hour"
        90 -> "1.5 hours"
    """
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    hours = minutes / 60
    if hours == int(hours):
        return f"{int(hours)} hour{'s' if hours != 1 else ''}"
    return f"{hours:.1f} hours"


def format_clock(ms: int, tz: str) -> str:
    """Wall-clock time of day, e.g. "14:05"."""
    return from_epoch_ms(ms, tz).strftime("%H:%M")
