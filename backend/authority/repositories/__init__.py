"""Repository package exposing persistence-layer access for all models."""

from __future__ import annotations

from authority.repositories.base import BaseRepository, Page, Pagination, paginate_select
from authority.repositories.token import TokenRepository
from authority.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "Page",
    "Pagination",
    "paginate_select",
    # Domain
    "TokenRepository",
    "UserRepository",
]
