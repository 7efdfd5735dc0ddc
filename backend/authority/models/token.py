"""Stored refresh, verification and password-reset tokens."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from authority.core.extensions import db
from authority.services._shared.ports.token_store import TokenKind, TokenRecord

from .base import PKMixin, ReprMixin, as_utc


class Token(PKMixin, ReprMixin, db.Model):
    """
    One stored token. Rows are never updated: rotation inserts a new row and
    deletes the old one.

    ``user_id`` is a logical reference to ``users.id`` without a foreign key,
    so account deletion and token cleanup stay independent.
    """

    __tablename__ = "tokens"

    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    token: Mapped[str] = mapped_column(String(128), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("token", name="uq_tokens_token"),
        Index("ix_tokens_user_id_kind", "user_id", "kind"),
        Index("ix_tokens_expires_at", "expires_at"),
    )

    @classmethod
    def from_record(cls, record: TokenRecord) -> Token:
        return cls(
            user_id=record.user_id,
            token=record.token,
            kind=record.kind.value,
            expires_at=record.expires_at,
            created_at=record.created_at,
        )

    def to_record(self) -> TokenRecord:
        return TokenRecord(
            id=self.id,
            user_id=self.user_id,
            token=self.token,
            kind=TokenKind(self.kind),
            expires_at=as_utc(self.expires_at),
            created_at=as_utc(self.created_at),
        )
