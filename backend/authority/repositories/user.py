"""User repository for persistence and lookup utilities."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from authority.models.user import User
from authority.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER hashes passwords or issues tokens; services do.
    """

    model = User

    def _filterable_fields(self):
        return {
            "email": User.email,
            "username": User.username,
            "role": User.role,
        }

    def _updatable_fields(self):
        """Publicly allowed updatable fields (email is immutable, password separate)."""
        return {"username", "role", "is_verified"}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def exists_by_username(self, username: str) -> bool:
        stmt = select(User.id).where(User.username == username.strip())
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Password ops ----------------------------

    def set_password_hash(self, user: User, password_hash: str) -> None:
        """Store an already-hashed password and flush the session."""
        user.password_hash = password_hash
        self.flush()
