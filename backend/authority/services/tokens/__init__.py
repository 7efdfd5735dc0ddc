"""Token lifecycle service and DTOs."""

from __future__ import annotations

from .dto import TokenConfig, TokenStatsOut
from .service import TokenService

__all__ = ["TokenService", "TokenConfig", "TokenStatsOut"]
