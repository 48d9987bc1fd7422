"""Salted password hashing backed by bcrypt."""

from __future__ import annotations

import bcrypt

from ..config import MIN_BCRYPT_ROUNDS

# bcrypt ignores everything past 72 bytes; newer releases raise instead.
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Hash and verify passwords with a fixed bcrypt cost factor."""

    def __init__(self, rounds: int = MIN_BCRYPT_ROUNDS) -> None:
        if rounds < MIN_BCRYPT_ROUNDS:
            raise ValueError(f"bcrypt cost must be at least {MIN_BCRYPT_ROUNDS}")
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        """Return the bcrypt hash (salt embedded) for ``password``."""
        return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=self._rounds)).decode("ascii")

    def verify(self, password: str, password_hash: str) -> bool:
        """Compare ``password`` against a stored hash using bcrypt's own check."""
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
        except ValueError:
            # malformed stored hash
            return False
