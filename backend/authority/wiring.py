"""Build the service graph from application config.

Services are constructed once per application with explicit dependencies and
kept in ``app.extensions``; nothing is instantiated at import time.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from authority.core.extensions import get_redis
from authority.infra.jwt.flask_jwt_access_token_provider import FlaskJWTAccessTokenProvider
from authority.infra.mail.logging_mail_sender import LoggingMailSender
from authority.infra.redis.redis_token_store import RedisTokenStore
from authority.infra.security.werkzeug_hasher import WerkzeugCredentialHasher
from authority.infra.sql.sql_token_store import SQLTokenStore
from authority.services._shared.ports import MailSender, TokenStore
from authority.services.accounts.service import AccountService
from authority.services.mail.messages import AccountMailer
from authority.services.passwords.service import PasswordService
from authority.services.registration.service import RegistrationService
from authority.services.sessions.service import SessionService
from authority.services.tokens.dto import TokenConfig
from authority.services.tokens.service import TokenService
from authority.services.users.service import UserManagementService

EXTENSION_KEY = "authority.services"


@dataclass(frozen=True, slots=True)
class Services:
    """Every application service, wired together."""

    tokens: TokenService
    accounts: AccountService
    sessions: SessionService
    registration: RegistrationService
    passwords: PasswordService
    users: UserManagementService


def build_token_store(app: Flask) -> TokenStore:
    """
    Select the token store from ``TOKEN_STORE_BACKEND``.

    :raises ValueError: For an unknown backend name.
    """
    backend = str(app.config.get("TOKEN_STORE_BACKEND", "sql")).strip().lower()
    if backend == "sql":
        return SQLTokenStore()
    if backend == "redis":
        return RedisTokenStore(r=get_redis(app))
    raise ValueError(f"Unknown TOKEN_STORE_BACKEND {backend!r}; expected 'sql' or 'redis'.")


def build_services(
    app: Flask,
    *,
    store: TokenStore | None = None,
    mail_sender: MailSender | None = None,
) -> Services:
    """
    Wire all services from ``app.config``.

    :param store: Override the configured token store (tests).
    :param mail_sender: Override the logging mail sender (tests).
    """
    cfg = app.config
    tokens = TokenService(
        store=store if store is not None else build_token_store(app),
        cfg=TokenConfig.from_mapping(cfg),
    )
    accounts = AccountService(
        hasher=WerkzeugCredentialHasher(work_factor=int(cfg.get("HASHER_WORK_FACTOR", 10)))
    )
    mailer = AccountMailer(
        sender=mail_sender
        or LoggingMailSender(
            from_name=cfg.get("MAIL_FROM_NAME", "Token Authority"),
            from_address=cfg.get("MAIL_FROM_ADDRESS", "no-reply@localhost"),
        ),
        frontend_url=cfg.get("FRONTEND_URL", "http://localhost:3000"),
    )
    return Services(
        tokens=tokens,
        accounts=accounts,
        sessions=SessionService(
            accounts=accounts,
            tokens=tokens,
            access_tokens=FlaskJWTAccessTokenProvider(
                expires_delta=cfg.get("JWT_ACCESS_TOKEN_EXPIRES")
            ),
        ),
        registration=RegistrationService(accounts=accounts, tokens=tokens, mailer=mailer),
        passwords=PasswordService(accounts=accounts, tokens=tokens, mailer=mailer),
        users=UserManagementService(accounts=accounts, tokens=tokens),
    )


def init_app(app: Flask) -> None:
    app.extensions[EXTENSION_KEY] = build_services(app)


def get_services(app: Flask | None = None) -> Services:
    """Return the services bound to ``app`` (default: the current app)."""
    target = app if app is not None else current_app
    services = target.extensions.get(EXTENSION_KEY)
    if services is None:
        raise RuntimeError("Services are not initialized. Call authority.wiring.init_app first.")
    return services
