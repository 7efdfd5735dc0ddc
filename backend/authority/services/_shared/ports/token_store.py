from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Protocol

from authority.services._shared.errors import ConflictError


class TokenKind(str, Enum):
    """Kinds of stored tokens; each has its own expiry and use semantics."""

    REFRESH = "refresh"
    VERIFICATION = "verification"
    PASSWORD_RESET = "passwordReset"


@dataclass(frozen=True, slots=True)
class TokenRecord:
    """
    Immutable stored token.

    :ivar user_id: Owning account (logical reference, no FK).
    :ivar token: Stored lookup key: the bearer string or its digest.
    :ivar kind: Token kind.
    :ivar expires_at: Absolute expiry (UTC). Checked at read time.
    :ivar created_at: Creation time (UTC).
    :ivar id: Storage-assigned identifier, ``None`` until stored.
    """

    user_id: int
    token: str
    kind: TokenKind
    expires_at: datetime
    created_at: datetime
    id: int | str | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class TokenStore(Protocol):
    """
    Durable keyed storage of token records.

    Single-record ``add``/``find``/``consume`` MUST be atomic. Driver failures
    surface as :class:`StoreUnavailableError`.
    """

    def add(self, record: TokenRecord) -> TokenRecord:
        """
        Persist a new record.

        :raises ConflictError: If ``record.token`` already exists (any kind).
        """

    def find(self, token: str, kind: TokenKind) -> TokenRecord | None:
        """Return the record matching ``token`` and ``kind``, expired or not."""

    def consume(self, token: str, kind: TokenKind) -> TokenRecord | None:
        """
        Atomically find and delete a record.

        Of several concurrent callers for the same token, exactly one receives
        the record; the others get ``None``.
        """

    def delete_by_user(self, user_id: int, kind: TokenKind) -> int:
        """Delete every record of ``kind`` owned by ``user_id``. :returns: Count deleted."""

    def delete_expired(self, now: datetime, user_id: int | None = None) -> int:
        """Delete records with ``expires_at < now``, optionally for one user only."""

    def count(self, user_id: int, kind: TokenKind, now: datetime) -> int:
        """Count live (unexpired) records of ``kind`` owned by ``user_id``."""


class InMemoryTokenStore(TokenStore):
    """
    In-memory token store.

    .. note::
       Uses a threading lock to provide atomic consume in unit tests.
    """

    def __init__(self) -> None:
        self._by_token: dict[str, TokenRecord] = {}
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def add(self, record: TokenRecord) -> TokenRecord:
        with self._lock:
            if record.token in self._by_token:
                raise ConflictError("Token", "token value already stored")
            stored = replace(record, id=next(self._seq))
            self._by_token[record.token] = stored
            return stored

    def find(self, token: str, kind: TokenKind) -> TokenRecord | None:
        with self._lock:
            rec = self._by_token.get(token)
            return rec if rec is not None and rec.kind is kind else None

    def consume(self, token: str, kind: TokenKind) -> TokenRecord | None:
        with self._lock:
            rec = self._by_token.get(token)
            if rec is None or rec.kind is not kind:
                return None
            del self._by_token[token]
            return rec

    def delete_by_user(self, user_id: int, kind: TokenKind) -> int:
        with self._lock:
            doomed = [
                t for t, r in self._by_token.items() if r.user_id == user_id and r.kind is kind
            ]
            for t in doomed:
                del self._by_token[t]
            return len(doomed)

    def delete_expired(self, now: datetime, user_id: int | None = None) -> int:
        with self._lock:
            doomed = [
                t
                for t, r in self._by_token.items()
                if r.is_expired(now) and (user_id is None or r.user_id == user_id)
            ]
            for t in doomed:
                del self._by_token[t]
            return len(doomed)

    def count(self, user_id: int, kind: TokenKind, now: datetime) -> int:
        with self._lock:
            return sum(
                1
                for r in self._by_token.values()
                if r.user_id == user_id and r.kind is kind and not r.is_expired(now)
            )

    def __len__(self) -> int:
        return len(self._by_token)
