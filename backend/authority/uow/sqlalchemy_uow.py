"""
SQLAlchemy units of work over the Flask-scoped session.

:class:`SQLAlchemyUnitOfWork` backs every account mutation;
:class:`SQLAlchemyReadOnlyUnitOfWork` backs lookups and listings and refuses
any write issued inside its block.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from authority.core.extensions import db
from authority.repositories import UserRepository
from authority.uow.base import UnitOfWork

LOGGER = logging.getLogger(__name__)

# First SQL keyword of statements the read-only scope rejects
WRITE_KEYWORDS = frozenset(
    {"insert", "update", "delete", "merge", "alter", "drop", "truncate", "create", "replace"}
)
# Dialects that understand ``SET TRANSACTION``
SET_TRANSACTION_DIALECTS = frozenset({"postgresql", "mysql", "mariadb"})


def _first_keyword(statement: str | None) -> str:
    parts = (statement or "").split(None, 1)
    return parts[0].lower() if parts else ""


class _SessionScope(UnitOfWork):
    """Repositories bound to ``db.session``."""

    def __init__(self) -> None:
        self.session = db.session
        self.users = UserRepository(session=self.session)

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyUnitOfWork(_SessionScope):
    """Read-write scope: commit on clean exit, roll back otherwise."""

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()


class SQLAlchemyReadOnlyUnitOfWork(_SessionScope):
    """
    Read-only scope with write guards.

    When the scope opens its own transaction it applies ``SET TRANSACTION``
    (isolation level and ``READ ONLY``) on PostgreSQL/MySQL and rolls back on
    exit. Inside an already running transaction (autobegin, test fixtures) it
    attaches and only installs the guards.

    :param isolation_level: Isolation level requested for an owned transaction.
    :param enforce_db_readonly: Also issue ``SET TRANSACTION READ ONLY``.
    """

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__()
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly
        self._owned: SessionTransaction | None = None
        self._guards: list[tuple[Any, str, Callable[..., None]]] = []

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        try:
            self._owned = self.session.begin()
        except InvalidRequestError:
            self._owned = None

        conn = self.session.connection()
        self._guard(self.session, "before_flush", self._block_pending_changes)
        self._guard(conn, "before_cursor_execute", self._block_write_statements)

        if self._owned is not None and conn.dialect.name in SET_TRANSACTION_DIALECTS:
            self._apply_transaction_settings()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owned is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
                self._owned = None
        finally:
            self._unguard()

    def commit(self) -> None:
        """:raises RuntimeError: always; this scope never writes."""
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def _block_pending_changes(self, session: Session, flush_context: Any, instances: Any) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
            )

    def _block_write_statements(self, conn, cursor, statement, parameters, context, executemany):
        keyword = _first_keyword(statement)
        if keyword in WRITE_KEYWORDS:
            raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {keyword.upper()}")

    def _apply_transaction_settings(self) -> None:
        directives = []
        if self.isolation_level:
            directives.append(f"SET TRANSACTION ISOLATION LEVEL {self.isolation_level.upper()}")
        if self.enforce_db_readonly:
            directives.append("SET TRANSACTION READ ONLY")
        try:
            for directive in directives:
                self.session.execute(text(directive))
        except SQLAlchemyError as exc:
            LOGGER.warning("SET TRANSACTION failed (%s); relying on write guards only.", exc)

    def _guard(self, target: Any, name: str, fn: Callable[..., None]) -> None:
        event.listen(target, name, fn)
        self._guards.append((target, name, fn))

    def _unguard(self) -> None:
        while self._guards:
            target, name, fn = self._guards.pop()
            with suppress(InvalidRequestError):
                event.remove(target, name, fn)
