"""Relaxant re-dosing timers for anesthesia providers, delivered over Telegram."""

__version__ = "0.1.0"
