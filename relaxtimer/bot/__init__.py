"""Telegram handlers, formatters and keyboards."""
