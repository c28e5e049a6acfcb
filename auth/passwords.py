"""
auth/passwords.py -- bcrypt password hashing.

Passwords: bcrypt is the right choice for low-entropy secrets because its
cost factor makes brute-force expensive. The cost is configurable so tests can
run at the minimum (rounds=4) while production keeps the default of 12.

bcrypt only reads the first 72 bytes of its input and recent releases raise
ValueError instead of silently truncating. Both hash() and verify() truncate
to 72 bytes so the two sides always see the same input.

The dummy hash enables timing equalization in RecordStore.authenticate(): the
store always runs a bcrypt check, even when the username does not exist, so
response time does not reveal whether a username is registered.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import bcrypt

from core.errors import HashingFailure

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """One-way hash + verify primitive. The store never inspects hash contents.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("s3cret")
        hasher.verify("s3cret", stored)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt hash of plain. Raises HashingFailure on primitive errors."""
        try:
            return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise HashingFailure() from exc

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed. A malformed stored hash never matches."""
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    @property
    def dummy_hash(self) -> str:
        """A throwaway hash at the configured cost, computed on first use."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("itemvault_timing_dummy")
        return self._dummy_hash
