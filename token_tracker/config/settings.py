"""
Application settings.

Single typed snapshot of the environment, built by get_settings() and passed
to the database factory, the authority checker and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from token_tracker.config import env


@dataclass(frozen=True)
class Settings:
    db_path: Path
    db_timeout_sec: float
    solana_rpc_url: str
    allow_mint_authority: bool = False
    allow_freeze_authority: bool = False


def get_settings() -> Settings:
    """
    Return the current application settings read from environment and .env.

    Raises:
        ConfigError: a variable is present but malformed.
    """
    return Settings(
        db_path=env.get_db_path(),
        db_timeout_sec=env.get_db_timeout_sec(),
        solana_rpc_url=env.get_solana_rpc_url(),
        allow_mint_authority=env.allow_mint_authority(),
        allow_freeze_authority=env.allow_freeze_authority(),
    )
