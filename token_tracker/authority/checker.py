"""
Token authority checks for SPL mints.

A token whose mint authority is still set can be inflated at will, and a live
freeze authority can lock holders out; both are treated as insecure unless
explicitly allowed. The checker only produces verdicts; turning a verdict into
a stored classification is the ingestion layer's job.
"""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from solders.pubkey import Pubkey

from token_tracker.config.settings import Settings
from token_tracker.core.exceptions import AuthorityCheckError
from token_tracker.tracker_logging import get_logger

logger = get_logger(__name__)

# SPL Mint account: COption<Pubkey> mint_authority, u64 supply, u8 decimals,
# bool is_initialized, COption<Pubkey> freeze_authority
MINT_LAYOUT = struct.Struct("<I32sQBBI32s")
MINT_ACCOUNT_LEN = MINT_LAYOUT.size


@dataclass
class TokenAuthorityStatus:
    mint_address: str
    has_mint_authority: bool
    has_freeze_authority: bool
    mint_authority_address: str | None
    freeze_authority_address: str | None
    is_secure: bool
    supply: int
    decimals: int


def _validate_mint(mint_address: str) -> Pubkey:
    """Parse a base58 mint address. Raises ValueError if empty or invalid."""
    mint_address = (mint_address or "").strip()
    if not mint_address:
        raise ValueError("mint address must be non-empty")
    try:
        return Pubkey.from_string(mint_address)
    except Exception as e:
        raise ValueError(f"Invalid mint address: {e}") from e


def decode_mint_account(mint_address: str, data: bytes) -> TokenAuthorityStatus:
    """Decode raw mint account bytes into an authority status."""
    if len(data) < MINT_ACCOUNT_LEN:
        raise AuthorityCheckError(mint_address, f"mint account too short ({len(data)} bytes)")
    mint_tag, mint_auth, supply, decimals, _initialized, freeze_tag, freeze_auth = MINT_LAYOUT.unpack_from(data)
    mint_authority = str(Pubkey(mint_auth)) if mint_tag else None
    freeze_authority = str(Pubkey(freeze_auth)) if freeze_tag else None
    return TokenAuthorityStatus(
        mint_address=mint_address,
        has_mint_authority=mint_authority is not None,
        has_freeze_authority=freeze_authority is not None,
        mint_authority_address=mint_authority,
        freeze_authority_address=freeze_authority,
        is_secure=mint_authority is None and freeze_authority is None,
        supply=supply,
        decimals=decimals,
    )


class TokenAuthorityChecker(ABC):
    """Capability the ingestion layer depends on; substitute a fake in tests."""

    @abstractmethod
    def get_token_authorities(self, mint_address: str) -> TokenAuthorityStatus:
        ...

    @abstractmethod
    def is_token_secure(self, mint_address: str) -> bool:
        ...


class RpcAuthorityChecker(TokenAuthorityChecker):
    """Reads mint accounts through a solana-py Client."""

    def __init__(
        self,
        client: Any,
        *,
        allow_mint_authority: bool = False,
        allow_freeze_authority: bool = False,
    ) -> None:
        self._client = client
        self.allow_mint_authority = allow_mint_authority
        self.allow_freeze_authority = allow_freeze_authority

    @classmethod
    def from_settings(cls, settings: Settings) -> RpcAuthorityChecker:
        from solana.rpc.api import Client

        return cls(
            Client(settings.solana_rpc_url),
            allow_mint_authority=settings.allow_mint_authority,
            allow_freeze_authority=settings.allow_freeze_authority,
        )

    def get_token_authorities(self, mint_address: str) -> TokenAuthorityStatus:
        """
        Fetch and decode the mint account.

        Raises:
            ValueError: mint_address is empty or not a valid public key.
            AuthorityCheckError: the RPC call failed or the account is missing/malformed.
        """
        pubkey = _validate_mint(mint_address)
        try:
            resp = self._client.get_account_info(pubkey)
        except Exception as e:
            logger.warning("authority_rpc_error", mint=mint_address, error=str(e))
            raise AuthorityCheckError(mint_address, f"rpc error: {e}") from e
        account = getattr(resp, "value", None)
        if account is None:
            raise AuthorityCheckError(mint_address, "mint account not found")
        data = getattr(account, "data", None)
        if not isinstance(data, (bytes, bytearray)):
            raise AuthorityCheckError(mint_address, "unexpected account data encoding")
        status = decode_mint_account(mint_address, bytes(data))
        logger.debug(
            "authority_checked",
            mint=mint_address,
            has_mint_authority=status.has_mint_authority,
            has_freeze_authority=status.has_freeze_authority,
        )
        return status

    def is_token_secure(self, mint_address: str) -> bool:
        """Apply the allow_* settings to the authority status. Any failure counts as insecure."""
        try:
            status = self.get_token_authorities(mint_address)
        except (ValueError, AuthorityCheckError) as e:
            logger.warning("authority_check_failed", mint=mint_address, error=str(e))
            return False
        return (not status.has_mint_authority or self.allow_mint_authority) and (
            not status.has_freeze_authority or self.allow_freeze_authority
        )
