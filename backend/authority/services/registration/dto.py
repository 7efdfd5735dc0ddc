# authority/services/registration/dto.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SignupIn:
    """
    Input DTO for self-service signup.

    :param email: Login email.
    :type email: str
    :param username: Public handle, 3 to 50 characters.
    :type username: str
    :param password: Raw password, at least 6 characters.
    :type password: str
    """

    email: str
    username: str
    password: str
