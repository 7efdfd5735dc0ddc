"""Convenience exports for input schemas."""

from __future__ import annotations

from .accounts import (
    CreateAdminSchema,
    LoginSchema,
    PasswordChangeSchema,
    PasswordResetSchema,
    SignupSchema,
)

__all__ = [
    "SignupSchema",
    "LoginSchema",
    "CreateAdminSchema",
    "PasswordResetSchema",
    "PasswordChangeSchema",
]
