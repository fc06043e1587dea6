"""
bcrypt password hashing.

Passwords are pre-hashed with SHA-256 before bcrypt, which sidesteps
bcrypt's 72-byte input limit. Plain bcrypt hashes of the raw password
(accounts imported from the previous user store) still verify, and
``verify_and_update`` hands back a replacement hash for them.

Example:
    hasher = PasswordHasher(rounds=12)
    stored = hasher.hash_password("Password1!")
    ok, new_hash = hasher.verify_and_update("Password1!", stored)
"""

import base64
import hashlib
from typing import Optional, Tuple

import bcrypt

PREHASHED = "sha256-bcrypt"
PLAIN = "bcrypt"


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def _cost(hashed: str) -> int:
    # "$2b$12$<salt+digest>"
    try:
        return int(hashed.split("$")[2])
    except (IndexError, ValueError):
        return 0


class PasswordHasher:
    """One-way password hashing and verification."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def _matching_scheme(self, password: str, hashed: str) -> Optional[str]:
        if not hashed:
            return None
        stored = hashed.encode("utf-8")
        try:
            if bcrypt.checkpw(_prehash(password), stored):
                return PREHASHED
            if bcrypt.checkpw(password.encode("utf-8"), stored):
                return PLAIN
        except ValueError:
            # Malformed hash, or a raw password over bcrypt's input limit
            return None
        return None

    def verify_password(self, password: str, hashed: str) -> bool:
        return self._matching_scheme(password, hashed) is not None

    def verify_and_update(self, password: str, hashed: str) -> Tuple[bool, Optional[str]]:
        """
        Verify, and produce a new hash when the stored one is outdated.

        Returns:
            (matched, replacement hash or None). A replacement is issued for
            plain bcrypt hashes and for hashes below the configured cost.
        """
        scheme = self._matching_scheme(password, hashed)
        if scheme is None:
            return False, None
        if scheme == PLAIN or _cost(hashed) < self.rounds:
            return True, self.hash_password(password)
        return True, None
