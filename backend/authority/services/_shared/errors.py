"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between stores,
repositories, domain models, and application services.

Callers (CLI commands, a future HTTP layer) translate them into their own
responses; the service layer never builds transport payloads.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Supports PostgreSQL (constraint name lookup) and falls back to matching the
    column name for SQLite, whose messages read ``UNIQUE constraint failed:
    users.email``.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    # uq_<table>_<column> -> "<table>.<column>"
    parts = constraint_name.lower().split("_", 2)
    if len(parts) == 3 and parts[0] == "uq":
        return f"{parts[1]}.{parts[2]}" in message
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - Raised directly for invalid credentials or a wrong old password.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is absent, or when a token is unknown or expired.

    The two token outcomes are deliberately indistinguishable.

    :param entity: Entity name (e.g., "User", "Token").
    :type entity: str
    :param key: Identifier or search key. Never a bearer secret.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


@dataclass(slots=True)
class AuthorizationError(ServiceError):
    """
    Raised when an authorization policy denies an action.

    :param action: Name of the denied action (e.g., ``"delete_user"``).
    :type action: str
    :param detail: Message surfaced to callers.
    :type detail: str
    """

    action: str
    detail: str = "Unauthorized"

    def __str__(self) -> str:
        return self.detail


@dataclass(slots=True)
class InvalidTokenError(ServiceError):
    """
    Raised when a signed access token is malformed, tampered with or expired.

    :param reason: Short diagnostic (never includes the token itself).
    :type reason: str
    """

    reason: str = "invalid token"

    def __str__(self) -> str:
        return f"Invalid access token: {self.reason}"


@dataclass(slots=True)
class StoreUnavailableError(ServiceError):
    """
    Raised when a backing store (database, Redis) cannot serve a request.

    Always chained from the driver exception; never retried by the services.

    :param store: Store name (e.g., ``"redis"``, ``"sql"``).
    :type store: str
    :param detail: Driver-level explanation.
    :type detail: str
    """

    store: str
    detail: str

    def __str__(self) -> str:
        return f"{self.store} token store unavailable: {self.detail}"
