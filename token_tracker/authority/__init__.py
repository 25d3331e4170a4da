"""
Token authority checker: mint/freeze authority verdicts for SPL tokens.
"""

from token_tracker.authority.checker import (
    RpcAuthorityChecker,
    TokenAuthorityChecker,
    TokenAuthorityStatus,
    decode_mint_account,
)

__all__ = [
    "RpcAuthorityChecker",
    "TokenAuthorityChecker",
    "TokenAuthorityStatus",
    "decode_mint_account",
]
