"""User account model."""

from __future__ import annotations

from sqlalchemy import Boolean, Index, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, validates

from authority.core.extensions import db
from authority.services._shared.principal import Role

from .base import PKMixin, ReprMixin, TimestampMixin


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed); immutable once set.
    username : str
        Public handle, trimmed, 3 to 50 characters. Unique per system.
    password_hash : str
        Encoded hash produced by the credential hasher. Never exposed in DTOs.
    role : str
        One of ``user``, ``admin``, ``superadmin`` (default ``user``).
    is_verified : bool
        Whether the email address was confirmed.
    """

    __tablename__ = "users"

    # Columns
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
        Index("ix_users_role", "role"),
    )

    @property
    def role_enum(self) -> Role:
        return Role.parse(self.role)

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing, malformed, or being changed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens in the schemas.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        if self.email is not None and self.email != v:
            raise ValueError("Email cannot be changed.")
        return v

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        """
        Normalize and validate username.

        :raises ValueError: If username is missing or outside 3..50 characters.
        """
        if not isinstance(value, str):
            raise ValueError("Username is required.")
        v = value.strip()
        if not 3 <= len(v) <= 50:
            raise ValueError("Username must be between 3 and 50 characters.")
        return v

    @validates("role")
    def _normalize_role(self, key: str, value: str | Role) -> str:
        return Role.parse(value).value
