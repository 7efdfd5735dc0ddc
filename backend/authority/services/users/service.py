"""
UserManagementService
=====================

Policy-guarded account management on behalf of an authenticated caller.
Every method takes the caller :class:`Principal` and checks the account
policy table before touching storage (except ``delete_user``, which must
read the target's role first).
"""

from __future__ import annotations

import logging

from authority.services._shared.policies.accounts import AccountAction
from authority.services._shared.principal import Principal, Role
from authority.services.accounts.dto import UserCreateIn, UserOut, UserPageOut, UserUpdateIn
from authority.services.accounts.service import AccountService
from authority.services.tokens.service import TokenService
from authority.services.users.dto import ProfileUpdateIn

LOGGER = logging.getLogger(__name__)

LISTABLE_ROLES = (Role.USER, Role.ADMIN)


class UserManagementService:
    """View, list, update, delete and promote accounts under the policy."""

    def __init__(self, *, accounts: AccountService, tokens: TokenService) -> None:
        self.accounts = accounts
        self.tokens = tokens

    def get_user(self, caller: Principal, user_id: int) -> UserOut:
        """
        :raises AuthorizationError: Unless owner or admin.
        :raises NotFoundError: If the account does not exist.
        """
        self.accounts.ensure_allowed(AccountAction.VIEW_USER, caller, user_id)
        return self.accounts.get_user(user_id)

    def list_users(
        self,
        caller: Principal,
        *,
        role: Role | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> UserPageOut:
        """
        List accounts, optionally filtered to ``user`` or ``admin``.

        :raises AuthorizationError: Unless admin or superadmin.
        :raises ValueError: For a role filter other than ``user``/``admin``.
        """
        self.accounts.ensure_allowed(AccountAction.LIST_USERS, caller)
        if role is not None and Role.parse(role) not in LISTABLE_ROLES:
            raise ValueError("Role filter must be 'user' or 'admin'.")
        return self.accounts.list_users(role=role, page=page, limit=limit)

    def create_admin(self, caller: Principal, dto: UserCreateIn) -> UserOut:
        """
        Create an ``admin`` account.

        :raises AuthorizationError: Unless superadmin.
        :raises ConflictError: When the email or username is taken.
        """
        self.accounts.ensure_allowed(AccountAction.CREATE_ADMIN, caller)
        user = self.accounts.create_user(
            UserCreateIn(
                email=dto.email, username=dto.username, password=dto.password, role=Role.ADMIN
            )
        )
        LOGGER.info("admin created", extra={"user_id": user.id, "action": "create_admin"})
        return user

    def update_user(self, caller: Principal, user_id: int, dto: ProfileUpdateIn) -> UserOut:
        """
        Update username and/or role. Passwords are never changed here.

        A role change requires ``CHANGE_ROLE``; everything else (including an
        empty update) requires ``UPDATE_USER``.

        :raises AuthorizationError: When either check fails.
        :raises NotFoundError: If the account does not exist.
        :raises ConflictError: If the new username is taken.
        """
        if dto.role is not None:
            self.accounts.ensure_allowed(
                AccountAction.CHANGE_ROLE, caller, user_id, Role.parse(dto.role)
            )
        if dto.username is not None or dto.role is None:
            self.accounts.ensure_allowed(AccountAction.UPDATE_USER, caller, user_id)
        return self.accounts.update_user(
            user_id, UserUpdateIn(username=dto.username, role=dto.role)
        )

    def delete_user(self, caller: Principal, user_id: int) -> None:
        """
        Delete an account and revoke its refresh tokens.

        :raises NotFoundError: If the account does not exist (checked first).
        :raises AuthorizationError: If the policy forbids it; superadmins are
            never deletable.
        """
        target = self.accounts.get_user(user_id)
        self.accounts.ensure_allowed(AccountAction.DELETE_USER, caller, target.principal)
        self.accounts.delete_user(user_id)
        self.tokens.revoke_all_refresh_tokens(user_id)
        LOGGER.info("account removed", extra={"user_id": user_id, "action": "delete_user"})
