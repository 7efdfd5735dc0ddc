"""Factory Boy base wired to the per-test transactional session."""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Holder for the session the ``session`` fixture hands out."""

    _current = None

    @classmethod
    def set(cls, session):
        cls._current = session

    @classmethod
    def get(cls):
        """:raises RuntimeError: When a factory runs outside the fixture wiring."""
        if cls._current is None:
            raise RuntimeError("No factory session registered; request the 'session' fixture.")
        return cls._current


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Flush-only persistence; the test transaction is rolled back afterwards."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
