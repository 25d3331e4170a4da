"""
Environment variable loading and validation for the token tracker.

- TRACKER_DB_PATH: SQLite file holding tokens and creator_reputation (default: tokens.db)
- TRACKER_DB_TIMEOUT_SEC: how long a transaction waits on a locked database (default: 5)
- SOLANA_RPC_URL: RPC endpoint used by the authority checker
- HELIUS_API_KEY: Helius API key (fallback for RPC URL)
- ALLOW_MINT_AUTHORITY / ALLOW_FREEZE_AUTHORITY: accept tokens with live authorities
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from token_tracker.core.exceptions import ConfigError

# config is token_tracker/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_ROOT = _CONFIG_DIR.parent.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_DB_PATH = "tokens.db"
DEFAULT_DB_TIMEOUT_SEC = 5.0

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"

_TRUE_VALUES = ("1", "true", "yes", "on")


def load_tracker_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH)


def _env_flag(name: str) -> bool:
    return (os.getenv(name) or "").strip().lower() in _TRUE_VALUES


def get_db_path() -> Path:
    """Return TRACKER_DB_PATH from env, or tokens.db in cwd."""
    load_tracker_env()
    raw = (os.getenv("TRACKER_DB_PATH") or "").strip()
    return Path(raw or DEFAULT_DB_PATH)


def get_db_timeout_sec() -> float:
    """Return TRACKER_DB_TIMEOUT_SEC as a positive float. Raises ConfigError if malformed."""
    load_tracker_env()
    raw = (os.getenv("TRACKER_DB_TIMEOUT_SEC") or "").strip()
    if not raw:
        return DEFAULT_DB_TIMEOUT_SEC
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"TRACKER_DB_TIMEOUT_SEC must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"TRACKER_DB_TIMEOUT_SEC must be positive, got {value}")
    return value


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY > public mainnet endpoint.
    """
    load_tracker_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    if key:
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return MAINNET_RPC_URL


def allow_mint_authority() -> bool:
    load_tracker_env()
    return _env_flag("ALLOW_MINT_AUTHORITY")


def allow_freeze_authority() -> bool:
    load_tracker_env()
    return _env_flag("ALLOW_FREEZE_AUTHORITY")


def mask_rpc_url(url: str) -> str:
    """Hide the API key part of an RPC URL for logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
