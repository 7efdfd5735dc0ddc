"""Login, refresh rotation and logout."""

from __future__ import annotations

from .dto import LoginIn, LoginOut, TokenPairOut
from .service import SessionService

__all__ = ["SessionService", "LoginIn", "LoginOut", "TokenPairOut"]
