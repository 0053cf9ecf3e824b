"""
Password hashing and session token minting.

The hasher is consumed through the `Hasher` protocol so services never depend on
bcrypt directly; tests and alternative deployments can inject another implementation.
"""

import secrets
from typing import Protocol

import bcrypt

from convenly.core.exceptions import HashingError

# 32 raw bytes -> 43 URL-safe characters, no padding
SESSION_TOKEN_BYTES = 32


class Hasher(Protocol):
    def hash(self, plaintext: str) -> str:
        ...

    def verify(self, plaintext: str, digest: str) -> bool:
        ...


class BcryptHasher:
    """Salted bcrypt hashing; the same plaintext never hashes to the same digest twice."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        try:
            digest = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, TypeError) as e:
            raise HashingError(str(e)) from e
        return digest.decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed digest
            return False


def generate_session_token() -> str:
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)
