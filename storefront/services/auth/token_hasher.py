"""
Opaque tokens for session cookies and emailed links.

Session ids are stored only as their SHA-256 digest, so a copy of the
sessions collection cannot be replayed as cookies.
"""

import hashlib
import secrets

# 32 random bytes -> 43 URL-safe characters
TOKEN_BYTES = 32


class TokenHasher:
    """Random token source plus the one-way digest used as a storage key."""

    @staticmethod
    def generate_token(nbytes: int = TOKEN_BYTES) -> str:
        """URL-safe random token, usable verbatim in a cookie or a link path."""
        return secrets.token_urlsafe(nbytes)

    @staticmethod
    def hash_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
