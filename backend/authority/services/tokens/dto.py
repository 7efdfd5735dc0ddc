# authority/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Token lifetimes and storage options.

    :param refresh_ttl: Refresh token lifetime.
    :param verification_ttl: Email verification token lifetime.
    :param password_reset_ttl: Password reset token lifetime.
    :param hash_at_rest: Store SHA-256 digests instead of plaintext tokens.
    """

    refresh_ttl: timedelta = timedelta(days=7)
    verification_ttl: timedelta = timedelta(hours=24)
    password_reset_ttl: timedelta = timedelta(hours=1)
    hash_at_rest: bool = True

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> TokenConfig:
        """Build from a Flask config mapping, falling back to the defaults."""
        return cls(
            refresh_ttl=timedelta(days=int(config.get("REFRESH_TOKEN_TTL_DAYS", 7))),
            verification_ttl=timedelta(hours=int(config.get("VERIFICATION_TOKEN_TTL_HOURS", 24))),
            password_reset_ttl=timedelta(
                hours=int(config.get("PASSWORD_RESET_TOKEN_TTL_HOURS", 1))
            ),
            hash_at_rest=bool(config.get("TOKEN_HASH_AT_REST", True)),
        )


@dataclass(frozen=True, slots=True)
class TokenStatsOut:
    """Live token counts for one user."""

    user_id: int
    refresh: int
    verification: int
    password_reset: int
