"""
AccountService
==============

Transport-free CRUD over user accounts. Passwords are hashed through the
injected :class:`CredentialHasher`; the service never returns hashes.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from authority.models.user import User
from authority.repositories.user import UserRepository
from authority.services._shared.base import BaseService
from authority.services._shared.dto import PageMeta
from authority.services._shared.errors import ConflictError, NotFoundError, violates
from authority.services._shared.ports import CredentialHasher
from authority.services._shared.principal import Role
from authority.services.accounts.dto import UserCreateIn, UserOut, UserPageOut, UserUpdateIn

LOGGER = logging.getLogger(__name__)


class AccountService(BaseService):
    """
    Create, read, update and delete accounts; verify credentials.
    """

    def __init__(self, *, hasher: CredentialHasher) -> None:
        self.hasher = hasher

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def create_user(self, dto: UserCreateIn) -> UserOut:
        """
        Create an account.

        :param dto: Creation input.
        :returns: The new account.
        :raises ConflictError: If the email or username is already taken.
        """
        norm_email = dto.email.lower().strip()
        norm_username = dto.username.strip()
        password_hash = self.hasher.hash(dto.password)

        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_email(norm_email):
                    raise ConflictError("User", "email already in use")
                if repo.exists_by_username(norm_username):
                    raise ConflictError("User", "username already in use")

                user = repo.add(
                    User(
                        email=norm_email,
                        username=norm_username,
                        password_hash=password_hash,
                        role=Role.parse(dto.role).value,
                        is_verified=False,
                    )
                )
                out = self._to_out(user)
        except IntegrityError as exc:
            # Lost a uniqueness race between the check and the insert
            if violates(exc, "uq_users_email"):
                raise ConflictError("User", "email already in use") from exc
            if violates(exc, "uq_users_username"):
                raise ConflictError("User", "username already in use") from exc
            raise

        LOGGER.info("account created", extra={"user_id": out.id})
        return out

    def update_user(self, user_id: int, dto: UserUpdateIn) -> UserOut:
        """
        Apply a partial update (username, role, verification flag).

        :raises NotFoundError: If the account does not exist.
        :raises ConflictError: If the new username is taken.
        """
        changes = dto.changes()
        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                user = self._get_or_404(repo, user_id)
                new_username = changes.get("username")
                if (
                    new_username is not None
                    and new_username != user.username
                    and repo.exists_by_username(str(new_username))
                ):
                    raise ConflictError("User", "username already in use")
                if changes:
                    repo.update(user, **changes)
                return self._to_out(user)
        except IntegrityError as exc:
            if violates(exc, "uq_users_username"):
                raise ConflictError("User", "username already in use") from exc
            raise

    def delete_user(self, user_id: int) -> None:
        """:raises NotFoundError: If the account does not exist."""
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            repo.delete(self._get_or_404(repo, user_id))
        LOGGER.info("account deleted", extra={"user_id": user_id})

    def update_password(self, user_id: int, new_password: str) -> None:
        """
        Hash and store a new password.

        :raises NotFoundError: If the account does not exist.
        """
        password_hash = self.hasher.hash(new_password)
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            repo.set_password_hash(self._get_or_404(repo, user_id), password_hash)
        LOGGER.info("password updated", extra={"user_id": user_id})

    def mark_verified(self, user_id: int) -> UserOut:
        return self.update_user(user_id, UserUpdateIn(is_verified=True))

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_user(self, user_id: int) -> UserOut:
        """:raises NotFoundError: If the account does not exist."""
        with self.ro_uow() as uow:
            return self._to_out(self._get_or_404(uow.users, user_id))

    def find_by_email(self, email: str) -> UserOut | None:
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            return self._to_out(user) if user is not None else None

    def list_users(
        self, *, role: Role | None = None, page: int = 1, limit: int = 10
    ) -> UserPageOut:
        """
        List accounts ordered by id.

        :param role: Optional role filter.
        :param page: 1-based page number.
        :param limit: Page size, capped at ``MAX_PAGE_SIZE``.
        """
        pagination = self.ensure_pagination(page=page, limit=limit)
        filters = {"role": Role.parse(role).value} if role is not None else None
        with self.ro_uow() as uow:
            result = uow.users.paginate(pagination, filters=filters)
            items = [self._to_out(u) for u in result.items]
        return UserPageOut(
            items=items,
            meta=PageMeta.build(page=result.page, limit=result.limit, total=result.total),
        )

    def verify_credentials(self, email: str, password: str) -> UserOut | None:
        """
        Return the account when ``password`` matches, else ``None``.

        Unknown emails and wrong passwords are indistinguishable to callers.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            if user is None or not self.hasher.verify(password, user.password_hash):
                return None
            return self._to_out(user)

    def check_password(self, user_id: int, password: str) -> bool:
        """:raises NotFoundError: If the account does not exist."""
        with self.ro_uow() as uow:
            user = self._get_or_404(uow.users, user_id)
            return self.hasher.verify(password, user.password_hash)

    # ------------------------------------------------------------------ #
    # Mapping
    # ------------------------------------------------------------------ #

    @staticmethod
    def _get_or_404(repo: UserRepository, user_id: int) -> User:
        user = repo.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    def _to_out(user: User) -> UserOut:
        return UserOut(
            id=user.id,
            email=user.email,
            username=user.username,
            role=user.role_enum,
            is_verified=bool(user.is_verified),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
