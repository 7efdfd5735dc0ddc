# authority/services/users/dto.py
from __future__ import annotations

from dataclasses import dataclass

from authority.services._shared.principal import Role


@dataclass(frozen=True, slots=True)
class ProfileUpdateIn:
    """
    Caller-driven account update.

    The verification flag is deliberately absent: it only changes through
    email verification.

    :param username: New handle, or ``None`` to keep it.
    :param role: New role, or ``None`` to keep it.
    """

    username: str | None = None
    role: Role | None = None
