from __future__ import annotations

from typing import Protocol

from authority.services._shared.principal import IdentityClaims


class AccessTokenProvider(Protocol):
    """Port for issuing and verifying signed, short-lived access tokens."""

    def issue(self, claims: IdentityClaims) -> str:
        """Sign ``claims`` into a compact access token."""

    def verify(self, token: str) -> IdentityClaims:
        """
        Check signature, expiry, token type and claim shape.

        :raises InvalidTokenError: On any failure.
        """
