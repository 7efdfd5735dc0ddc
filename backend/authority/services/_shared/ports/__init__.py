"""
authority.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) that the services depend on.

Modules
-------
- :mod:`token_store`:
    Defines :class:`~.TokenStore`, :class:`~.TokenRecord` and
    :class:`~.TokenKind`, plus the in-memory store used in unit tests.

- :mod:`clock`:
    Defines :class:`~.Clock` and :class:`~.RandomSource` with system
    implementations.

- :mod:`credential_hasher`, :mod:`mail_sender`, :mod:`access_token_provider`:
    Contracts for password hashing, outgoing mail and signed access tokens.

Design Notes
------------
Concrete adapters (SQL, Redis, Flask-JWT-Extended, Werkzeug, logging mail)
implement these interfaces under ``authority.infra``.
"""

from __future__ import annotations

from .access_token_provider import AccessTokenProvider
from .clock import Clock, RandomSource, SystemClock, SystemRandomSource
from .credential_hasher import CredentialHasher
from .mail_sender import InMemoryMailSender, MailSender, OutgoingMail
from .token_store import InMemoryTokenStore, TokenKind, TokenRecord, TokenStore

__all__ = [
    "AccessTokenProvider",
    "Clock",
    "CredentialHasher",
    "InMemoryMailSender",
    "InMemoryTokenStore",
    "MailSender",
    "OutgoingMail",
    "RandomSource",
    "SystemClock",
    "SystemRandomSource",
    "TokenKind",
    "TokenRecord",
    "TokenStore",
]
