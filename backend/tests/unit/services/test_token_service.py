"""Unit tests for TokenService over the in-memory store."""

from __future__ import annotations

import hashlib
from datetime import timedelta

import pytest
from authority.services._shared.errors import ConflictError, NotFoundError
from authority.services._shared.ports import InMemoryTokenStore, TokenKind
from authority.services.tokens.dto import TokenConfig
from authority.services.tokens.service import TokenService

from tests.helpers.clock import CountingRandomSource, RepeatingRandomSource


# ------------------------------ Refresh tokens ------------------------------ #
class TestRefreshTokens:
    def test_issue_then_verify_returns_owner(self, tokens):
        token = tokens.issue_refresh_token(1)
        assert tokens.verify_refresh_token(token) == 1

    def test_token_is_long_and_url_safe(self, tokens):
        token = tokens.issue_refresh_token(1)
        assert len(token) >= 64
        assert set(token) <= set(
            "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_="
        )

    def test_verify_does_not_consume(self, tokens):
        token = tokens.issue_refresh_token(1)
        tokens.verify_refresh_token(token)
        assert tokens.verify_refresh_token(token) == 1

    def test_multiple_devices_coexist(self, tokens):
        t1 = tokens.issue_refresh_token(1)
        t2 = tokens.issue_refresh_token(1)
        assert t1 != t2
        assert tokens.verify_refresh_token(t1) == 1
        assert tokens.verify_refresh_token(t2) == 1
        assert tokens.count_live_tokens(1, TokenKind.REFRESH) == 2

    def test_revoke_then_verify_is_not_found(self, tokens):
        token = tokens.issue_refresh_token(1)
        assert tokens.revoke_refresh_token(token) is True
        with pytest.raises(NotFoundError):
            tokens.verify_refresh_token(token)

    def test_revoke_unknown_returns_false(self, tokens):
        assert tokens.revoke_refresh_token("does-not-exist") is False
        assert tokens.revoke_refresh_token("") is False

    def test_revoke_all_counts_and_clears(self, tokens):
        issued = [tokens.issue_refresh_token(7) for _ in range(3)]
        other = tokens.issue_refresh_token(8)

        assert tokens.revoke_all_refresh_tokens(7) == 3
        assert tokens.count_live_tokens(7, TokenKind.REFRESH) == 0
        for token in issued:
            with pytest.raises(NotFoundError):
                tokens.verify_refresh_token(token)
        assert tokens.verify_refresh_token(other) == 8

    def test_revoke_all_for_user_without_tokens(self, tokens):
        assert tokens.revoke_all_refresh_tokens(99) == 0

    def test_expired_token_is_rejected_and_deleted(self, tokens, token_store, clock):
        token = tokens.issue_refresh_token(1)
        clock.advance(days=7, seconds=1)

        with pytest.raises(NotFoundError):
            tokens.verify_refresh_token(token)
        # Lazily removed on the failed lookup, before any sweep
        assert len(token_store) == 0

    def test_token_valid_until_exact_expiry(self, tokens, clock):
        token = tokens.issue_refresh_token(1)
        clock.advance(days=7)
        assert tokens.verify_refresh_token(token) == 1

    def test_refresh_token_is_not_a_verification_token(self, tokens):
        token = tokens.issue_refresh_token(1)
        with pytest.raises(NotFoundError):
            tokens.consume_verification_token(token)
        assert tokens.verify_refresh_token(token) == 1


# ----------------------------- One-time tokens ------------------------------ #
class TestVerificationTokens:
    def test_issue_is_hex_64(self, tokens):
        token = tokens.issue_verification_token(3)
        assert len(token) == 64
        int(token, 16)

    def test_consume_once(self, tokens):
        token = tokens.issue_verification_token(3)
        assert tokens.consume_verification_token(token) == 3
        with pytest.raises(NotFoundError):
            tokens.consume_verification_token(token)

    def test_consume_expired_deletes_record(self, tokens, token_store, clock):
        token = tokens.issue_verification_token(3)
        clock.advance(hours=24, seconds=1)
        with pytest.raises(NotFoundError):
            tokens.consume_verification_token(token)
        assert len(token_store) == 0

    def test_does_not_invalidate_earlier_verification_tokens(self, tokens):
        first = tokens.issue_verification_token(3)
        tokens.issue_verification_token(3)
        assert tokens.consume_verification_token(first) == 3


class TestPasswordResetTokens:
    def test_second_request_invalidates_first(self, tokens):
        r1 = tokens.issue_password_reset_token(2)
        r2 = tokens.issue_password_reset_token(2)

        assert r1 != r2
        with pytest.raises(NotFoundError):
            tokens.verify_password_reset_token(r1)
        assert tokens.verify_password_reset_token(r2) == 2
        assert tokens.count_live_tokens(2, TokenKind.PASSWORD_RESET) == 1

    def test_verify_does_not_consume(self, tokens):
        token = tokens.issue_password_reset_token(2)
        assert tokens.verify_password_reset_token(token) == 2
        assert tokens.verify_password_reset_token(token) == 2

    def test_consume_is_explicit(self, tokens):
        token = tokens.issue_password_reset_token(2)
        tokens.consume_password_reset_token(token)
        with pytest.raises(NotFoundError):
            tokens.verify_password_reset_token(token)

    def test_consume_unknown_is_silent(self, tokens):
        tokens.consume_password_reset_token("unknown")
        tokens.consume_password_reset_token("not a token!")

    def test_expires_after_one_hour(self, tokens, clock):
        token = tokens.issue_password_reset_token(2)
        clock.advance(hours=1, microseconds=1)
        with pytest.raises(NotFoundError):
            tokens.verify_password_reset_token(token)

    def test_does_not_touch_other_users(self, tokens):
        mine = tokens.issue_password_reset_token(2)
        tokens.issue_password_reset_token(5)
        assert tokens.verify_password_reset_token(mine) == 2


# ------------------------------ Malformed input ----------------------------- #
@pytest.mark.parametrize(
    "bad",
    ["", " ", "a b", "../etc/passwd", "tok\n", "x" * 513, "émoji", None, 12345],
)
def test_malformed_tokens_are_not_found(tokens, bad):
    with pytest.raises(NotFoundError):
        tokens.verify_refresh_token(bad)
    with pytest.raises(NotFoundError):
        tokens.consume_verification_token(bad)
    with pytest.raises(NotFoundError):
        tokens.verify_password_reset_token(bad)


# ------------------------------- Maintenance -------------------------------- #
class TestSweep:
    def test_sweep_removes_only_expired(self, tokens, token_store, clock):
        tokens.issue_password_reset_token(1)  # 1h
        tokens.issue_verification_token(1)  # 24h
        live = tokens.issue_refresh_token(1)  # 7d
        clock.advance(hours=25)

        assert tokens.sweep_expired() == 2
        assert len(token_store) == 1
        assert tokens.verify_refresh_token(live) == 1

    def test_sweep_is_idempotent(self, tokens, clock):
        tokens.issue_password_reset_token(1)
        clock.advance(hours=2)
        assert tokens.sweep_expired() == 1
        assert tokens.sweep_expired() == 0

    def test_sweep_for_user(self, tokens, token_store, clock):
        tokens.issue_password_reset_token(1)
        tokens.issue_password_reset_token(2)
        clock.advance(hours=2)

        assert tokens.sweep_expired_for_user(1) == 1
        assert len(token_store) == 1

    def test_stats(self, tokens, clock):
        tokens.issue_refresh_token(4)
        tokens.issue_refresh_token(4)
        tokens.issue_verification_token(4)
        tokens.issue_password_reset_token(4)
        clock.advance(hours=2)

        stats = tokens.stats(4)
        assert (stats.refresh, stats.verification, stats.password_reset) == (2, 1, 0)


# ------------------------------ Configuration ------------------------------- #
class TestStorage:
    def test_hash_at_rest_stores_digest(self, token_store, clock):
        service = TokenService(store=token_store, clock=clock)
        token = service.issue_refresh_token(1)

        digest = hashlib.sha256(token.encode()).hexdigest()
        assert token_store.find(digest, TokenKind.REFRESH) is not None
        assert token_store.find(token, TokenKind.REFRESH) is None

    def test_plaintext_mode_stores_token(self, token_store, clock):
        service = TokenService(
            store=token_store, clock=clock, cfg=TokenConfig(hash_at_rest=False)
        )
        token = service.issue_refresh_token(1)
        assert token_store.find(token, TokenKind.REFRESH) is not None
        assert service.verify_refresh_token(token) == 1

    def test_custom_ttls(self, token_store, clock):
        service = TokenService(
            store=token_store,
            clock=clock,
            cfg=TokenConfig(refresh_ttl=timedelta(minutes=5)),
        )
        token = service.issue_refresh_token(1)
        clock.advance(minutes=6)
        with pytest.raises(NotFoundError):
            service.verify_refresh_token(token)

    def test_injected_random_source(self, clock):
        service = TokenService(
            store=InMemoryTokenStore(), clock=clock, random_source=CountingRandomSource()
        )
        assert service.issue_verification_token(1) == (1).to_bytes(32, "big").hex()
        assert service.issue_verification_token(1) == (2).to_bytes(32, "big").hex()

    def test_collision_surfaces_as_conflict(self, clock):
        service = TokenService(
            store=InMemoryTokenStore(), clock=clock, random_source=RepeatingRandomSource()
        )
        service.issue_refresh_token(1)
        with pytest.raises(ConflictError):
            service.issue_refresh_token(2)

    def test_config_from_mapping(self):
        cfg = TokenConfig.from_mapping(
            {
                "REFRESH_TOKEN_TTL_DAYS": 30,
                "VERIFICATION_TOKEN_TTL_HOURS": 48,
                "PASSWORD_RESET_TOKEN_TTL_HOURS": 2,
                "TOKEN_HASH_AT_REST": False,
            }
        )
        assert cfg.refresh_ttl == timedelta(days=30)
        assert cfg.verification_ttl == timedelta(hours=48)
        assert cfg.password_reset_ttl == timedelta(hours=2)
        assert cfg.hash_at_rest is False
        assert TokenConfig.from_mapping({}) == TokenConfig()
