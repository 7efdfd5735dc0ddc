# authority/services/tokens/service.py
from __future__ import annotations

import base64
import hashlib
import logging
import re
from datetime import timedelta

from authority.services._shared.errors import NotFoundError
from authority.services._shared.ports import (
    Clock,
    RandomSource,
    SystemClock,
    SystemRandomSource,
    TokenKind,
    TokenRecord,
    TokenStore,
)
from authority.services.tokens.dto import TokenConfig, TokenStatsOut

LOGGER = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 48
ONE_TIME_TOKEN_BYTES = 32
MAX_TOKEN_LENGTH = 512

# URL-safe base64 (refresh) and hex (one-time) both fit this alphabet
_TOKEN_ALPHABET = re.compile(r"[A-Za-z0-9_\-]+={0,2}")


class TokenService:
    """
    Lifecycle of refresh, verification and password-reset tokens.

    Stateless apart from the store: every operation is independent. Unknown
    and expired tokens both raise :class:`NotFoundError`; malformed strings
    behave the same and never reach the store. Store failures propagate as
    :class:`StoreUnavailableError` and are never retried.
    """

    def __init__(
        self,
        *,
        store: TokenStore,
        clock: Clock | None = None,
        random_source: RandomSource | None = None,
        cfg: TokenConfig | None = None,
    ) -> None:
        """
        :param store: Durable token storage.
        :param clock: Time source (UTC).
        :param random_source: CSPRNG used for token bytes.
        :param cfg: Lifetimes and hash-at-rest switch.
        """
        self.store = store
        self.clock = clock or SystemClock()
        self.random = random_source or SystemRandomSource()
        self.cfg = cfg or TokenConfig()

    # ------------------------------------------------------------------ #
    # Refresh tokens
    # ------------------------------------------------------------------ #

    def issue_refresh_token(self, user_id: int) -> str:
        """
        Create a refresh token: 48 random bytes, URL-safe base64 (64 chars).

        A user may hold any number of refresh tokens (one per device).
        """
        token = base64.urlsafe_b64encode(self.random.random_bytes(REFRESH_TOKEN_BYTES)).decode()
        self._store(user_id, token, TokenKind.REFRESH)
        return token

    def verify_refresh_token(self, token: str) -> int:
        """
        Return the owner of a live refresh token without consuming it.

        An expired record is deleted on the spot.

        :raises NotFoundError: Unknown, malformed or expired token.
        """
        return self._verify(token, TokenKind.REFRESH)

    def revoke_refresh_token(self, token: str) -> bool:
        """Delete one refresh token. :returns: Whether it existed."""
        if not self._well_formed(token):
            return False
        return self.store.consume(self._key(token), TokenKind.REFRESH) is not None

    def revoke_all_refresh_tokens(self, user_id: int) -> int:
        """Delete every refresh token of ``user_id``. :returns: Count deleted."""
        count = self.store.delete_by_user(user_id, TokenKind.REFRESH)
        LOGGER.info(
            "refresh tokens revoked",
            extra={"user_id": user_id, "kind": TokenKind.REFRESH.value, "count": count},
        )
        return count

    # ------------------------------------------------------------------ #
    # Email verification tokens
    # ------------------------------------------------------------------ #

    def issue_verification_token(self, user_id: int) -> str:
        """Create a verification token: 32 random bytes, hex (64 chars)."""
        token = self.random.random_bytes(ONE_TIME_TOKEN_BYTES).hex()
        self._store(user_id, token, TokenKind.VERIFICATION)
        return token

    def consume_verification_token(self, token: str) -> int:
        """
        Redeem a verification token exactly once.

        The record is deleted whether or not it was still live.

        :raises NotFoundError: Unknown, already used, malformed or expired.
        """
        if not self._well_formed(token):
            raise NotFoundError("Token", TokenKind.VERIFICATION.value)
        record = self.store.consume(self._key(token), TokenKind.VERIFICATION)
        if record is None or record.is_expired(self.clock.now()):
            raise NotFoundError("Token", TokenKind.VERIFICATION.value)
        return record.user_id

    # ------------------------------------------------------------------ #
    # Password reset tokens
    # ------------------------------------------------------------------ #

    def issue_password_reset_token(self, user_id: int) -> str:
        """
        Create a reset token (hex, 64 chars), invalidating earlier ones.

        At most one live reset token exists per user.
        """
        self.store.delete_by_user(user_id, TokenKind.PASSWORD_RESET)
        token = self.random.random_bytes(ONE_TIME_TOKEN_BYTES).hex()
        self._store(user_id, token, TokenKind.PASSWORD_RESET)
        return token

    def verify_password_reset_token(self, token: str) -> int:
        """
        Return the owner of a live reset token without consuming it.

        Callers consume it with :meth:`consume_password_reset_token` once the
        password change succeeded, so a failed update leaves it usable.

        :raises NotFoundError: Unknown, malformed or expired token.
        """
        return self._verify(token, TokenKind.PASSWORD_RESET)

    def consume_password_reset_token(self, token: str) -> None:
        if self._well_formed(token):
            self.store.consume(self._key(token), TokenKind.PASSWORD_RESET)

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def sweep_expired(self) -> int:
        """Delete all expired records of any kind. Idempotent."""
        return self.store.delete_expired(self.clock.now())

    def sweep_expired_for_user(self, user_id: int) -> int:
        return self.store.delete_expired(self.clock.now(), user_id=user_id)

    def count_live_tokens(self, user_id: int, kind: TokenKind) -> int:
        return self.store.count(user_id, kind, self.clock.now())

    def stats(self, user_id: int) -> TokenStatsOut:
        return TokenStatsOut(
            user_id=user_id,
            refresh=self.count_live_tokens(user_id, TokenKind.REFRESH),
            verification=self.count_live_tokens(user_id, TokenKind.VERIFICATION),
            password_reset=self.count_live_tokens(user_id, TokenKind.PASSWORD_RESET),
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _ttl(self, kind: TokenKind) -> timedelta:
        if kind is TokenKind.REFRESH:
            return self.cfg.refresh_ttl
        if kind is TokenKind.VERIFICATION:
            return self.cfg.verification_ttl
        return self.cfg.password_reset_ttl

    def _store(self, user_id: int, token: str, kind: TokenKind) -> TokenRecord:
        now = self.clock.now()
        record = self.store.add(
            TokenRecord(
                user_id=user_id,
                token=self._key(token),
                kind=kind,
                expires_at=now + self._ttl(kind),
                created_at=now,
            )
        )
        LOGGER.info("token issued", extra={"user_id": user_id, "kind": kind.value})
        return record

    def _verify(self, token: str, kind: TokenKind) -> int:
        if not self._well_formed(token):
            raise NotFoundError("Token", kind.value)
        key = self._key(token)
        record = self.store.find(key, kind)
        if record is None:
            raise NotFoundError("Token", kind.value)
        if record.is_expired(self.clock.now()):
            self.store.consume(key, kind)
            raise NotFoundError("Token", kind.value)
        return record.user_id

    def _key(self, token: str) -> str:
        """Return the stored form of ``token``: its SHA-256 hex digest or itself."""
        if self.cfg.hash_at_rest:
            return hashlib.sha256(token.encode()).hexdigest()
        return token

    @staticmethod
    def _well_formed(token: object) -> bool:
        return (
            isinstance(token, str)
            and 0 < len(token) <= MAX_TOKEN_LENGTH
            and _TOKEN_ALPHABET.fullmatch(token) is not None
        )
