from __future__ import annotations

from .messages import AccountMailer

__all__ = ["AccountMailer"]
