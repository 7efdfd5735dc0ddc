import pytest
from authority.models.user import User
from authority.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from sqlalchemy import text

from tests.factories.user import UserFactory


@pytest.fixture()
def server_db(db):
    """
    Skip on SQLite: database-level READ ONLY transactional flags are not
    supported there and guards would be partially ineffective.
    """
    if db.engine.url.get_backend_name() == "sqlite":
        pytest.skip("Read-only write guards not supported on SQLite")


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_allows_reads(self, session):
        user = UserFactory()
        with ROuow() as uow:
            assert uow.session.query(User).count() == 1
            assert uow.users.get_by_email(user.email).id == user.id

    def test_disallows_commit(self, db):
        """commit() is always rejected."""
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_blocks_orm_flush_writes(self, server_db):
        """Attempting to flush ORM changes inside the RO UoW raises."""
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_blocks_core_dml(self, server_db):
        """Raw SQL DML/DDL is blocked inside the RO UoW."""
        email = UserFactory.build().email
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(text("INSERT INTO users (email) VALUES (:email)"), {"email": email})
