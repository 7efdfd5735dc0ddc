"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Token, mail and
clock collaborators are in-memory doubles unless a test asks for the real
adapters.
"""

from __future__ import annotations

import os

import pytest
from authority.core.config import TestingConfig
from authority.core.extensions import db as _db  # Flask-SQLAlchemy instance
from authority.factory import create_app  # application factory under test
from authority.infra.security.werkzeug_hasher import WerkzeugCredentialHasher
from authority.services._shared.ports import InMemoryMailSender, InMemoryTokenStore
from authority.services.accounts.service import AccountService
from authority.services.mail.messages import AccountMailer
from authority.services.tokens.dto import TokenConfig
from authority.services.tokens.service import TokenService
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from tests.helpers.clock import FrozenClock


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Signs access tokens with a fixed secret.
    - Avoids hitting external services (no Redis client is built).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-entropy-0123456789"
    SECRET_KEY = "test-secret"
    REDIS_URL = None
    TOKEN_STORE_BACKEND = "sql"
    FRONTEND_URL = "https://app.example.test"
    LOG_LEVEL = "INFO"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one. Service commits release the
    SAVEPOINT; the outer transaction is always rolled back.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session bound to the connection
    SessionFactory = sessionmaker(bind=connection, future=True, autoflush=False)
    scoped = scoped_session(SessionFactory)

    # 3) SAVEPOINT per test
    nested = connection.begin_nested()

    # 4) Re-create SAVEPOINT when the previous nested transaction ends
    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # 5) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Service doubles -----------------------------------------------------------
@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture()
def outbox() -> InMemoryMailSender:
    return InMemoryMailSender()


@pytest.fixture()
def tokens(token_store, clock) -> TokenService:
    """TokenService over the in-memory store and the frozen clock."""
    return TokenService(store=token_store, clock=clock, cfg=TokenConfig())


@pytest.fixture(scope="session")
def hasher() -> WerkzeugCredentialHasher:
    return WerkzeugCredentialHasher(work_factor=4)


@pytest.fixture()
def accounts(hasher) -> AccountService:
    return AccountService(hasher=hasher)


@pytest.fixture()
def mailer(outbox) -> AccountMailer:
    return AccountMailer(sender=outbox, frontend_url=TestConfig.FRONTEND_URL)
