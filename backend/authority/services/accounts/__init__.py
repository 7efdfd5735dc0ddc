"""Account persistence service and DTOs."""

from __future__ import annotations

from .dto import UserCreateIn, UserOut, UserPageOut, UserUpdateIn
from .service import AccountService

__all__ = ["AccountService", "UserCreateIn", "UserUpdateIn", "UserOut", "UserPageOut"]
