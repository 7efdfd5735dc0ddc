from __future__ import annotations

import secrets
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Port for the current time."""

    def now(self) -> datetime:
        """Return a timezone-aware UTC timestamp."""


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class RandomSource(Protocol):
    """Port for cryptographically secure random bytes."""

    def random_bytes(self, n: int) -> bytes: ...


class SystemRandomSource(RandomSource):
    def random_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)
