"""Unit tests for the account-management policy table."""

from __future__ import annotations

import pytest
from authority.services._shared.errors import AuthorizationError
from authority.services._shared.policies.accounts import (
    POLICY,
    AccountAction,
    authorize,
    can_change_password,
    can_change_role,
    can_create_admin,
    can_delete_user,
    can_list_users,
    can_update_user,
    can_view_user,
    ensure,
)
from authority.services._shared.principal import Principal, Role

USER = Principal(id=1, role=Role.USER)
OTHER_USER = Principal(id=2, role=Role.USER)
ADMIN = Principal(id=10, role=Role.ADMIN)
OTHER_ADMIN = Principal(id=11, role=Role.ADMIN)
SUPER = Principal(id=100, role=Role.SUPERADMIN)
OTHER_SUPER = Principal(id=101, role=Role.SUPERADMIN)


def test_every_action_has_a_predicate():
    assert set(POLICY) == set(AccountAction)


@pytest.mark.parametrize(
    ("caller", "target_id", "expected"),
    [
        (USER, USER.id, True),
        (USER, OTHER_USER.id, False),
        (ADMIN, USER.id, True),
        (SUPER, USER.id, True),
        (SUPER, ADMIN.id, True),
    ],
)
def test_view_and_update(caller, target_id, expected):
    assert can_view_user(caller, target_id) is expected
    assert can_update_user(caller, target_id) is expected


def test_owner_match_ignores_id_representation():
    assert can_view_user(USER, str(USER.id)) is True


@pytest.mark.parametrize(
    ("caller", "expected"), [(USER, False), (ADMIN, True), (SUPER, True)]
)
def test_list_users(caller, expected):
    assert can_list_users(caller) is expected


@pytest.mark.parametrize(
    ("caller", "target_id", "new_role", "expected"),
    [
        (USER, OTHER_USER.id, Role.ADMIN, False),
        (USER, USER.id, Role.SUPERADMIN, False),
        (ADMIN, USER.id, Role.ADMIN, False),
        (ADMIN, ADMIN.id, Role.SUPERADMIN, False),
        (SUPER, USER.id, Role.ADMIN, True),
        (SUPER, ADMIN.id, Role.USER, True),
        (SUPER, OTHER_SUPER.id, Role.ADMIN, True),
        # self: only the no-op change is allowed
        (SUPER, SUPER.id, Role.SUPERADMIN, True),
        (SUPER, SUPER.id, Role.ADMIN, False),
        (SUPER, SUPER.id, Role.USER, False),
    ],
)
def test_change_role(caller, target_id, new_role, expected):
    assert can_change_role(caller, target_id, new_role) is expected


def test_change_role_accepts_raw_role_strings():
    assert can_change_role(SUPER, SUPER.id, "superadmin") is True
    assert can_change_role(SUPER, SUPER.id, "admin") is False


@pytest.mark.parametrize(
    ("caller", "target_id", "expected"),
    [
        (USER, USER.id, True),
        (USER, OTHER_USER.id, False),
        (ADMIN, USER.id, False),
        (SUPER, USER.id, False),
        (SUPER, SUPER.id, True),
    ],
)
def test_change_password_is_owner_only(caller, target_id, expected):
    assert can_change_password(caller, target_id) is expected


@pytest.mark.parametrize(
    ("caller", "target", "expected"),
    [
        (USER, USER, True),
        (USER, OTHER_USER, False),
        (USER, ADMIN, False),
        (ADMIN, USER, True),
        (ADMIN, OTHER_ADMIN, True),
        (ADMIN, ADMIN, True),
        (SUPER, USER, True),
        (SUPER, ADMIN, True),
        # superadmins are never deletable
        (SUPER, SUPER, False),
        (SUPER, OTHER_SUPER, False),
        (ADMIN, SUPER, False),
        (USER, SUPER, False),
    ],
)
def test_delete_user(caller, target, expected):
    assert can_delete_user(caller, target) is expected


@pytest.mark.parametrize(
    ("caller", "expected"), [(USER, False), (ADMIN, False), (SUPER, True)]
)
def test_create_admin(caller, expected):
    assert can_create_admin(caller) is expected


def test_authorize_dispatches_through_table():
    assert authorize(AccountAction.DELETE_USER, ADMIN, USER) is True
    assert authorize(AccountAction.DELETE_USER, ADMIN, SUPER) is False
    assert authorize(AccountAction.CHANGE_ROLE, SUPER, SUPER.id, Role.USER) is False


def test_ensure_raises_unauthorized():
    with pytest.raises(AuthorizationError) as excinfo:
        ensure(AccountAction.LIST_USERS, USER)
    assert str(excinfo.value) == "Unauthorized"
    assert excinfo.value.action == "list_users"

    ensure(AccountAction.LIST_USERS, ADMIN)


def test_role_parse():
    assert Role.parse(" Admin ") is Role.ADMIN
    assert Role.parse(Role.USER) is Role.USER
    with pytest.raises(ValueError):
        Role.parse("root")
