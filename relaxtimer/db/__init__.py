"""Data models and persistence."""
