# authority/services/passwords/dto.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PasswordResetIn:
    """
    Input DTO for redeeming a reset token.

    :param token: Reset token from the emailed link.
    :param new_password: Raw replacement password.
    """

    token: str
    new_password: str


@dataclass(frozen=True, slots=True)
class PasswordChangeIn:
    old_password: str
    new_password: str
