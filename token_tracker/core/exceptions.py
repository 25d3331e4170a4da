"""
Application-level exceptions.

Storage failures are logged where they happen and then raised to the caller,
so ingestion code can retry or alert instead of guessing whether a write landed.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for all token tracker errors."""


class SchemaError(TrackerError):
    """Tables could not be created, or the store was used before its schema was ensured."""


class ConfigError(TrackerError, ValueError):
    """An environment variable is set but malformed."""


class StorageError(TrackerError):
    """A transaction failed and was rolled back."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class AuthorityCheckError(TrackerError):
    """The mint account could not be fetched or decoded."""

    def __init__(self, mint: str, message: str) -> None:
        super().__init__(f"{mint}: {message}")
        self.mint = mint
