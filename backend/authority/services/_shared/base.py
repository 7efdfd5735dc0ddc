# authority/services/_shared/base.py
from __future__ import annotations

from typing import Any

from authority.repositories.base import Pagination
from authority.services._shared.policies import accounts as account_policy
from authority.services._shared.policies.accounts import AccountAction
from authority.services._shared.principal import Principal
from authority.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Route every authorization check through the account policy table.
    * Offer shared validation helpers (pagination).

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - Services never build transport responses; they raise ``ServiceError``.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"
    MAX_PAGE_SIZE = 100

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(self, *, page: int, limit: int) -> Pagination:
        """
        Build a Pagination value object, clamping ``limit`` to ``MAX_PAGE_SIZE``.
        """
        page = max(1, int(page))
        limit = min(max(1, int(limit)), self.MAX_PAGE_SIZE)
        return Pagination(page=page, limit=limit)

    # --------------------------- AuthZ --------------------------------

    def ensure_allowed(self, action: AccountAction, caller: Principal, *args: Any) -> None:
        """
        Ensure ``caller`` may perform ``action``.

        :raises AuthorizationError: When the policy denies it.
        """
        account_policy.ensure(action, caller, *args)
