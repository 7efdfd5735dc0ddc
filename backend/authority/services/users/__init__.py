"""Policy-guarded user management."""

from __future__ import annotations

from .dto import ProfileUpdateIn
from .service import UserManagementService

__all__ = ["UserManagementService", "ProfileUpdateIn"]
