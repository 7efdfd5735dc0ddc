# authority/services/accounts/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from authority.services._shared.dto import PageMeta
from authority.services._shared.principal import IdentityClaims, Principal, Role

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserCreateIn:
    """
    Input DTO for creating an account.

    :param email: Login email (normalized by the model).
    :type email: str
    :param username: Unique handle, 3 to 50 characters.
    :type username: str
    :param password: Raw password (hashed by the service).
    :type password: str
    :param role: Initial role.
    :type role: Role
    """

    email: str
    username: str
    password: str
    role: Role = Role.USER


@dataclass(frozen=True, slots=True)
class UserUpdateIn:
    """
    Partial update; ``None`` fields are left untouched.

    Email is immutable and passwords have their own operation.
    """

    username: str | None = None
    role: Role | None = None
    is_verified: bool | None = None

    def changes(self) -> dict[str, object]:
        out: dict[str, object] = {}
        if self.username is not None:
            out["username"] = self.username.strip()
        if self.role is not None:
            out["role"] = Role.parse(self.role).value
        if self.is_verified is not None:
            out["is_verified"] = bool(self.is_verified)
        return out


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Public view of an account. Never carries the password hash.
    """

    id: int
    email: str
    username: str
    role: Role
    is_verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def principal(self) -> Principal:
        return Principal(id=self.id, role=self.role)

    @property
    def claims(self) -> IdentityClaims:
        return IdentityClaims(user_id=self.id, email=self.email, role=self.role)


@dataclass(frozen=True, slots=True)
class UserPageOut:
    items: list[UserOut]
    meta: PageMeta
