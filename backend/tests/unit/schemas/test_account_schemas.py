"""Unit tests for account input schemas."""

from __future__ import annotations

import pytest
from authority.schemas import (
    CreateAdminSchema,
    LoginSchema,
    PasswordChangeSchema,
    PasswordResetSchema,
    SignupSchema,
)
from authority.services._shared.principal import Role
from authority.services.accounts.dto import UserCreateIn
from authority.services.passwords.dto import PasswordChangeIn, PasswordResetIn
from authority.services.registration.dto import SignupIn
from authority.services.sessions.dto import LoginIn
from marshmallow import ValidationError

VALID = {"email": "ana@example.com", "username": "ana", "password": "secret1"}


def test_signup_loads_dto():
    dto = SignupSchema().load(VALID)
    assert dto == SignupIn(email="ana@example.com", username="ana", password="secret1")


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("email", "nope"),
        ("email", "a" * 95 + "@x.com"),
        ("username", "ab"),
        ("username", "u" * 51),
        ("username", " ana"),
        ("password", "short"),
        ("password", "p" * 129),
    ],
)
def test_signup_rejects(field, value):
    with pytest.raises(ValidationError) as exc:
        SignupSchema().load({**VALID, field: value})
    assert field in exc.value.messages


def test_signup_requires_all_fields():
    with pytest.raises(ValidationError) as exc:
        SignupSchema().load({})
    assert set(exc.value.messages) == {"email", "username", "password"}


def test_login_accepts_any_non_empty_password():
    dto = LoginSchema().load({"email": "ana@example.com", "password": "x"})
    assert isinstance(dto, LoginIn)
    with pytest.raises(ValidationError):
        LoginSchema().load({"email": "ana@example.com", "password": ""})


def test_create_admin_defaults_to_admin_role():
    dto = CreateAdminSchema().load(VALID)
    assert isinstance(dto, UserCreateIn)
    assert dto.role is Role.ADMIN


def test_create_admin_role_override():
    assert CreateAdminSchema(role=Role.SUPERADMIN).load(VALID).role is Role.SUPERADMIN


def test_password_reset_schema():
    dto = PasswordResetSchema().load({"token": "abc", "new_password": "secret1"})
    assert dto == PasswordResetIn(token="abc", new_password="secret1")
    with pytest.raises(ValidationError) as exc:
        PasswordResetSchema().load({"token": "t" * 513, "new_password": "secret1"})
    assert "token" in exc.value.messages


def test_password_change_schema():
    dto = PasswordChangeSchema().load({"old_password": "old", "new_password": "secret1"})
    assert dto == PasswordChangeIn(old_password="old", new_password="secret1")
