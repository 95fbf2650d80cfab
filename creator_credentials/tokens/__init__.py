"""Signed token minting for verification and issuance calls."""

from creator_credentials.tokens.issuer import (
    SignedToken,
    TokenIssuer,
    TokenOperation,
    get_token_issuer,
    normalize_private_key,
    reset_token_issuer,
)

__all__ = [
    "SignedToken",
    "TokenIssuer",
    "TokenOperation",
    "get_token_issuer",
    "normalize_private_key",
    "reset_token_issuer",
]
