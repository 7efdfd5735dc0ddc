# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]

from authority.services._shared.errors import ConflictError, StoreUnavailableError
from authority.services._shared.ports import TokenKind, TokenRecord, TokenStore


@dataclass(slots=True)
class RedisTokenStore(TokenStore):
    """
    Redis-backed token store.

    Layout
    ------
    - ``tok:{token}``: hash with ``user_id``, ``kind``, ``expires_at`` and
      ``created_at`` (epoch seconds, float). Redis expires it at ``expires_at``.
    - ``tok:u:{user_id}:{kind}``: set of the user's tokens of that kind.
    - ``tok:exp``: sorted set of all tokens scored by ``expires_at`` for sweeps.
    - ``tok:owner``: hash mapping each token to ``"{user_id}:{kind}"``, so a
      sweep can clean the per-user set after Redis expired the record itself.

    Single-record atomicity uses WATCH/MULTI/EXEC (optimistic locking).

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    EXPIRY_INDEX = "tok:exp"
    OWNER_INDEX = "tok:owner"

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token: str) -> str:
        return f"tok:{token}"

    @staticmethod
    def _ku(user_id: int, kind: TokenKind) -> str:
        return f"tok:u:{user_id}:{kind.value}"

    @staticmethod
    def _to_ts(dt: datetime) -> float:
        return dt.replace(tzinfo=UTC).timestamp() if dt.tzinfo is None else dt.timestamp()

    @staticmethod
    def _s(value: bytes | str | None, default: str = "") -> str:
        if value is None:
            return default
        return value.decode() if isinstance(value, bytes | bytearray) else str(value)

    def _to_record(self, token: str, h: dict) -> TokenRecord:
        def field(name: str) -> str:
            return self._s(h.get(name.encode(), h.get(name)))

        return TokenRecord(
            id=token,
            user_id=int(field("user_id")),
            token=token,
            kind=TokenKind(field("kind")),
            expires_at=datetime.fromtimestamp(float(field("expires_at")), tz=UTC),
            created_at=datetime.fromtimestamp(float(field("created_at")), tz=UTC),
        )

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except redis.WatchError:
            raise
        except redis.RedisError as exc:
            raise StoreUnavailableError("redis", str(exc)) from exc

    # -------------------- API ------------------------

    def add(self, record: TokenRecord) -> TokenRecord:
        key = self._k(record.token)
        exp_ts = self._to_ts(record.expires_at)
        with self._translate_errors():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        if p.exists(key):
                            p.unwatch()
                            raise ConflictError("Token", "token value already stored")
                        p.multi()
                        p.hset(
                            key,
                            mapping={
                                "user_id": str(record.user_id),
                                "kind": record.kind.value,
                                "expires_at": repr(exp_ts),
                                "created_at": repr(self._to_ts(record.created_at)),
                            },
                        )
                        p.pexpireat(key, int(exp_ts * 1000))
                        p.sadd(self._ku(record.user_id, record.kind), record.token)
                        p.zadd(self.EXPIRY_INDEX, {record.token: exp_ts})
                        p.hset(
                            self.OWNER_INDEX, record.token, f"{record.user_id}:{record.kind.value}"
                        )
                        p.execute()
                    return TokenRecord(
                        id=record.token,
                        user_id=record.user_id,
                        token=record.token,
                        kind=record.kind,
                        expires_at=record.expires_at,
                        created_at=record.created_at,
                    )
                except redis.WatchError:
                    continue

    def find(self, token: str, kind: TokenKind) -> TokenRecord | None:
        with self._translate_errors():
            h = self.r.hgetall(self._k(token))
        if not h:
            return None
        record = self._to_record(token, h)
        return record if record.kind is kind else None

    def consume(self, token: str, kind: TokenKind) -> TokenRecord | None:
        """
        Atomically find and delete ``token``.

        The WATCH on the record key makes EXEC fail for every caller but the
        first; losers retry, find nothing, and return ``None``.
        """
        key = self._k(token)
        with self._translate_errors():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        h = p.hgetall(key)
                        if not h:
                            p.unwatch()
                            return None
                        record = self._to_record(token, h)
                        if record.kind is not kind:
                            p.unwatch()
                            return None
                        p.multi()
                        p.delete(key)
                        p.srem(self._ku(record.user_id, kind), token)
                        p.zrem(self.EXPIRY_INDEX, token)
                        p.hdel(self.OWNER_INDEX, token)
                        p.execute()
                    return record
                except redis.WatchError:
                    continue

    def delete_by_user(self, user_id: int, kind: TokenKind) -> int:
        key_u = self._ku(user_id, kind)
        with self._translate_errors():
            tokens = [self._s(m) for m in self.r.smembers(key_u)]
            if not tokens:
                return 0
            with self.r.pipeline(transaction=True) as p:
                p.delete(*[self._k(t) for t in tokens])
                p.zrem(self.EXPIRY_INDEX, *tokens)
                p.srem(key_u, *tokens)
                p.hdel(self.OWNER_INDEX, *tokens)
                out = p.execute()
        return int(out[0])

    def delete_expired(self, now: datetime, user_id: int | None = None) -> int:
        now_ts = self._to_ts(now)
        with self._translate_errors():
            # Strictly below now: "(" marks an exclusive bound.
            candidates = [
                self._s(m) for m in self.r.zrangebyscore(self.EXPIRY_INDEX, "-inf", f"({now_ts!r}")
            ]
            deleted = 0
            for token in candidates:
                owner = self._owner(token)
                if user_id is not None and owner is not None and owner[0] != user_id:
                    continue
                with self.r.pipeline(transaction=True) as p:
                    p.delete(self._k(token))
                    if owner is not None:
                        p.srem(self._ku(*owner), token)
                    p.zrem(self.EXPIRY_INDEX, token)
                    p.hdel(self.OWNER_INDEX, token)
                    out = p.execute()
                # 0 when Redis already expired the hash; the indexes are cleaned anyway
                deleted += int(out[0])
        return deleted

    def _owner(self, token: str) -> tuple[int, TokenKind] | None:
        raw = self.r.hget(self.OWNER_INDEX, token)
        if raw is None:
            return None
        uid, _, kind = self._s(raw).partition(":")
        return int(uid), TokenKind(kind)

    def count(self, user_id: int, kind: TokenKind, now: datetime) -> int:
        now_ts = self._to_ts(now)
        with self._translate_errors():
            tokens = [self._s(m) for m in self.r.smembers(self._ku(user_id, kind))]
            if not tokens:
                return 0
            with self.r.pipeline(transaction=False) as p:
                for t in tokens:
                    p.hget(self._k(t), "expires_at")
                expiries = p.execute()
        return sum(1 for e in expiries if e is not None and float(self._s(e)) >= now_ts)
