"""SQLAlchemy-backed token store over the ``tokens`` table."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar, cast

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from authority.core.extensions import db
from authority.models.token import Token
from authority.repositories.token import TokenRepository
from authority.services._shared.errors import ConflictError, StoreUnavailableError, violates
from authority.services._shared.ports import TokenKind, TokenRecord, TokenStore

T = TypeVar("T")


@dataclass(slots=True)
class SQLTokenStore(TokenStore):
    """
    Token store on the shared Flask-SQLAlchemy session.

    Every call is its own transaction: writes commit before returning, and a
    failure rolls the session back. ``consume`` relies on a conditional
    ``DELETE`` whose rowcount decides which concurrent caller wins.

    .. note::
       Requires an active Flask app context.

    :param session_factory: Returns the session to use; defaults to ``db.session``.
    """

    session_factory: Callable[[], Session] = field(default=lambda: cast(Session, db.session))

    # -------------------- helpers --------------------

    @contextmanager
    def _transaction(self) -> Iterator[TokenRepository]:
        session = self.session_factory()
        try:
            yield TokenRepository(session=session)
            session.commit()
        except OperationalError as exc:
            session.rollback()
            raise StoreUnavailableError("sql", str(exc.orig or exc)) from exc
        except Exception:
            session.rollback()
            raise

    def _run(self, fn: Callable[[TokenRepository], T]) -> T:
        with self._transaction() as repo:
            return fn(repo)

    # -------------------- API ------------------------

    def add(self, record: TokenRecord) -> TokenRecord:
        def _add(repo: TokenRepository) -> TokenRecord:
            row = repo.add(Token.from_record(record))
            return row.to_record()

        try:
            return self._run(_add)
        except IntegrityError as exc:
            if violates(exc, "uq_tokens_token"):
                raise ConflictError("Token", "token value already stored") from exc
            raise

    def find(self, token: str, kind: TokenKind) -> TokenRecord | None:
        def _find(repo: TokenRepository) -> TokenRecord | None:
            row = repo.find(token, kind.value)
            return row.to_record() if row is not None else None

        return self._run(_find)

    def consume(self, token: str, kind: TokenKind) -> TokenRecord | None:
        def _consume(repo: TokenRepository) -> TokenRecord | None:
            row = repo.find(token, kind.value)
            if row is None:
                return None
            record = row.to_record()
            repo.session.expunge(row)
            if not repo.delete_by_id(cast(int, record.id)):
                # Lost the race against another consumer.
                return None
            return record

        return self._run(_consume)

    def delete_by_user(self, user_id: int, kind: TokenKind) -> int:
        return self._run(lambda repo: repo.delete_by_user(user_id, kind.value))

    def delete_expired(self, now: datetime, user_id: int | None = None) -> int:
        return self._run(lambda repo: repo.delete_expired(now, user_id))

    def count(self, user_id: int, kind: TokenKind, now: datetime) -> int:
        return self._run(lambda repo: repo.count_live(user_id, kind.value, now))
