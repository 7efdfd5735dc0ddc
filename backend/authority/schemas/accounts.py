"""Account input Marshmallow schemas.

Each schema validates raw input and returns the matching service DTO from
``load``.
"""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates

from authority.services._shared.principal import Role
from authority.services.accounts.dto import UserCreateIn
from authority.services.passwords.dto import PasswordChangeIn, PasswordResetIn
from authority.services.registration.dto import SignupIn
from authority.services.sessions.dto import LoginIn

EMAIL_MAX = 100
USERNAME_MIN = 3
USERNAME_MAX = 50
PASSWORD_MIN = 6
PASSWORD_MAX = 128


def _email() -> fields.Email:
    return fields.Email(required=True, validate=validate.Length(max=EMAIL_MAX))


def _username() -> fields.String:
    return fields.String(
        required=True, validate=validate.Length(min=USERNAME_MIN, max=USERNAME_MAX)
    )


def _password() -> fields.String:
    return fields.String(
        required=True, validate=validate.Length(min=PASSWORD_MIN, max=PASSWORD_MAX)
    )


class SignupSchema(Schema):
    """Input payload for self-service signup."""

    email = _email()
    username = _username()
    password = _password()

    @validates("username")
    def _username_not_blank(self, value: str, **_: Any) -> None:
        if value.strip() != value:
            raise ValidationError("Username must not start or end with whitespace.")

    @post_load
    def make_dto(self, data: dict[str, Any], **_: Any) -> SignupIn:
        return SignupIn(**data)


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = _email()
    password = fields.String(required=True, validate=validate.Length(min=1, max=PASSWORD_MAX))

    @post_load
    def make_dto(self, data: dict[str, Any], **_: Any) -> LoginIn:
        return LoginIn(**data)


class CreateAdminSchema(SignupSchema):
    """Payload for creating a privileged account; ``role`` is fixed by the caller."""

    def __init__(self, *, role: Role = Role.ADMIN, **kwargs: Any) -> None:
        self._role = role
        super().__init__(**kwargs)

    @post_load
    def make_dto(self, data: dict[str, Any], **_: Any) -> UserCreateIn:
        return UserCreateIn(role=self._role, **data)


class PasswordResetSchema(Schema):
    """Payload for redeeming a password reset token."""

    token = fields.String(required=True, validate=validate.Length(min=1, max=512))
    new_password = _password()

    @post_load
    def make_dto(self, data: dict[str, Any], **_: Any) -> PasswordResetIn:
        return PasswordResetIn(**data)


class PasswordChangeSchema(Schema):
    """Payload for an authenticated password change."""

    old_password = fields.String(required=True, validate=validate.Length(min=1, max=PASSWORD_MAX))
    new_password = _password()

    @post_load
    def make_dto(self, data: dict[str, Any], **_: Any) -> PasswordChangeIn:
        return PasswordChangeIn(**data)
