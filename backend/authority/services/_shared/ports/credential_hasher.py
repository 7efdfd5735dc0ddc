from __future__ import annotations

from typing import Protocol


class CredentialHasher(Protocol):
    """One-way password hashing with a configurable work factor."""

    def hash(self, plain: str) -> str:
        """Return an encoded hash of ``plain``."""

    def verify(self, plain: str, hashed: str) -> bool:
        """Return ``True`` when ``plain`` matches ``hashed``."""
