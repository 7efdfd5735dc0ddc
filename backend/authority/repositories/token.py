"""Token repository: single-statement operations over the ``tokens`` table."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, func, select
from sqlalchemy.engine import CursorResult

from authority.models.token import Token
from authority.repositories.base import BaseRepository


class TokenRepository(BaseRepository[Token]):
    """Persistence-only repository for :class:`Token`.

    Deletions are issued as bulk ``DELETE`` statements whose rowcount is the
    source of truth, so two sessions racing on the same row cannot both
    observe a successful delete.
    """

    model = Token

    def find(self, token: str, kind: str) -> Token | None:
        stmt = select(Token).where(Token.token == token, Token.kind == kind)
        return cast(Token | None, self.session.execute(stmt).scalars().first())

    def delete_by_id(self, token_id: int) -> bool:
        """Delete one row. :returns: ``True`` when this call removed it."""
        stmt = delete(Token).where(Token.id == token_id).execution_options(
            synchronize_session=False
        )
        result = cast(CursorResult, self.session.execute(stmt))
        return result.rowcount == 1

    def delete_by_user(self, user_id: int, kind: str) -> int:
        stmt = (
            delete(Token)
            .where(Token.user_id == user_id, Token.kind == kind)
            .execution_options(synchronize_session=False)
        )
        return int(cast(CursorResult, self.session.execute(stmt)).rowcount or 0)

    def delete_expired(self, now: datetime, user_id: int | None = None) -> int:
        stmt = delete(Token).where(Token.expires_at < now)
        if user_id is not None:
            stmt = stmt.where(Token.user_id == user_id)
        stmt = stmt.execution_options(synchronize_session=False)
        return int(cast(CursorResult, self.session.execute(stmt)).rowcount or 0)

    def count_live(self, user_id: int, kind: str, now: datetime) -> int:
        stmt = select(func.count(Token.id)).where(
            Token.user_id == user_id,
            Token.kind == kind,
            Token.expires_at >= now,
        )
        return int(self.session.execute(stmt).scalar_one())
