"""
Authorization policy for account-management actions.

Every predicate is pure: it depends only on the caller, the action and the
target, never on storage. Services consult :data:`POLICY` through
:func:`authorize` / :func:`ensure` instead of re-deriving any rule.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from authority.services._shared.errors import AuthorizationError
from authority.services._shared.policies.common import is_admin, is_owner, is_superadmin
from authority.services._shared.principal import Principal, Role


class AccountAction(str, Enum):
    """Guarded account-management actions."""

    VIEW_USER = "view_user"
    LIST_USERS = "list_users"
    UPDATE_USER = "update_user"
    CHANGE_ROLE = "change_role"
    CHANGE_PASSWORD = "change_password"
    DELETE_USER = "delete_user"
    CREATE_ADMIN = "create_admin"


def can_view_user(caller: Principal, target_id: int) -> bool:
    """Owners see themselves; admins and superadmins see everyone."""
    return is_owner(actor_id=caller.id, owner_id=target_id) or is_admin(caller)


def can_list_users(caller: Principal) -> bool:
    return is_admin(caller)


def can_update_user(caller: Principal, target_id: int) -> bool:
    """Non-role profile updates follow the view rule."""
    return can_view_user(caller, target_id)


def can_change_role(caller: Principal, target_id: int, new_role: Role) -> bool:
    """
    Only a superadmin changes roles, and never demotes themself.

    A superadmin "changing" their own role to ``superadmin`` is a no-op and
    therefore allowed.
    """
    if not is_superadmin(caller):
        return False
    if is_owner(actor_id=caller.id, owner_id=target_id):
        return Role.parse(new_role) is Role.SUPERADMIN
    return True


def can_change_password(caller: Principal, target_id: int) -> bool:
    return is_owner(actor_id=caller.id, owner_id=target_id)


def can_delete_user(caller: Principal, target: Principal) -> bool:
    """
    Superadmin accounts are never deletable, not even by themselves.

    Everyone else may be deleted by their owner or by an admin.
    """
    if target.role is Role.SUPERADMIN:
        return False
    return is_owner(actor_id=caller.id, owner_id=target.id) or is_admin(caller)


def can_create_admin(caller: Principal) -> bool:
    return is_superadmin(caller)


POLICY: Mapping[AccountAction, Callable[..., bool]] = MappingProxyType(
    {
        AccountAction.VIEW_USER: can_view_user,
        AccountAction.LIST_USERS: can_list_users,
        AccountAction.UPDATE_USER: can_update_user,
        AccountAction.CHANGE_ROLE: can_change_role,
        AccountAction.CHANGE_PASSWORD: can_change_password,
        AccountAction.DELETE_USER: can_delete_user,
        AccountAction.CREATE_ADMIN: can_create_admin,
    }
)


def authorize(action: AccountAction, caller: Principal, *args: Any) -> bool:
    """
    Evaluate the predicate registered for ``action``.

    :param action: Action being attempted.
    :param caller: Authenticated caller.
    :param args: Predicate-specific target arguments (target id, target
        principal, new role).
    :returns: ``True`` when the action is allowed.
    """
    return bool(POLICY[action](caller, *args))


def ensure(action: AccountAction, caller: Principal, *args: Any) -> None:
    """
    Like :func:`authorize`, but raise when the action is denied.

    :raises AuthorizationError: If the predicate returns ``False``.
    """
    if not authorize(action, caller, *args):
        raise AuthorizationError(action.value)
