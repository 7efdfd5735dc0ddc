"""Unit of Work contract shared by the account services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authority.repositories import UserRepository


class UnitOfWork(ABC):
    """
    Transaction scope for one account use-case.

    ``users`` works on the scope's session; leaving the block without an
    error commits, anything else rolls back. Token records are written by
    the token stores, each call in its own transaction.
    """

    users: UserRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
