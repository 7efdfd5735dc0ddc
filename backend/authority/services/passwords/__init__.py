"""Password reset and change flows."""

from __future__ import annotations

from .dto import PasswordChangeIn, PasswordResetIn
from .service import PasswordService

__all__ = ["PasswordService", "PasswordResetIn", "PasswordChangeIn"]
