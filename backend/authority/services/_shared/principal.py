"""Roles, caller identities and access-token claims."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Account roles, ordered by privilege."""

    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_admin(self) -> bool:
        """``True`` for ``admin`` and ``superadmin``."""
        return self in (Role.ADMIN, Role.SUPERADMIN)

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        """
        Coerce a raw role string into :class:`Role`.

        :raises ValueError: If ``value`` is not a known role.
        """
        if isinstance(value, Role):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True, slots=True)
class Principal:
    """
    An ``{id, role}`` pair: the caller of an action, or the account it targets.

    :param id: Account identifier.
    :type id: int
    :param role: Account role.
    :type role: Role
    """

    id: int
    role: Role


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    """
    Claims embedded in a signed access token.

    :param user_id: Subject of the token.
    :param email: Account email at issuance time.
    :param role: Account role at issuance time.
    """

    user_id: int
    email: str
    role: Role

    @property
    def principal(self) -> Principal:
        return Principal(id=self.user_id, role=self.role)
