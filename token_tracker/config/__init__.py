"""
Configuration management for the token tracker.

Loads settings from environment variables and an optional .env file.
"""

from token_tracker.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
