"""
Core utilities: shared exceptions and cross-cutting concerns.
"""

from token_tracker.core.exceptions import (
    AuthorityCheckError,
    ConfigError,
    SchemaError,
    StorageError,
    TrackerError,
)

__all__ = ["AuthorityCheckError", "ConfigError", "SchemaError", "StorageError", "TrackerError"]
