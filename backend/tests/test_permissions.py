"""
Tests for the static role table and permission predicates.

Users are plain objects: the predicates only read role, assigned store and
extra permissions.
"""

from types import SimpleNamespace

import pytest

from cashboard.permissions import (
    ALL_ROLES,
    PROTECTED_PERMISSIONS,
    ROLE_DEFINITIONS,
    STORE_SCOPED_ROLES,
    can_access_store,
    can_manage_system,
    can_manage_users,
    get_all_permission_codes,
    get_effective_permissions,
    get_role_name,
    has_permission,
    validate_permission_code,
    validate_role,
)


# Role grants as published for the dashboard, written out by hand.
OPERATIONS = {
    "daily_operations:view", "daily_operations:create",
    "daily_operations:edit", "daily_operations:delete",
}
CLOSURES = {"closures:view", "closures:create", "closures:edit", "closures:delete"}
STORES = {"stores:view", "stores:create", "stores:edit", "stores:delete"}
USERS = {"users:view", "users:create", "users:edit", "users:delete"}

EXPECTED_GRANTS = {
    "director": {"dashboard:view", *OPERATIONS, *CLOSURES, *STORES, *USERS,
                 "reports:view", "reports:export", "settings:view", "settings:edit", "all_stores:access"},
    "admin_contable": {"dashboard:view", *OPERATIONS, *CLOSURES, *STORES, *USERS,
                       "reports:view", "reports:export", "settings:view", "all_stores:access"},
    "gerente_tienda": {"dashboard:view", *OPERATIONS, *CLOSURES, "stores:view", "reports:view",
                       "assigned_store:access"},
    "cajero": {"dashboard:view", "daily_operations:view", "daily_operations:create",
               "daily_operations:edit", "closures:view", "assigned_store:access"},
    "asistente_admin": {"dashboard:view", "daily_operations:view", "closures:view", "reports:view",
                        "all_stores:access"},
}

ALL_CODES = sorted(
    OPERATIONS | CLOSURES | STORES | USERS
    | {"dashboard:view", "reports:view", "reports:export", "settings:view", "settings:edit",
       "all_stores:access", "assigned_store:access"}
)


def make_user(role, store_id=None, extra=()):
    return SimpleNamespace(role=role, assigned_store_id=store_id, extra_permissions=list(extra))


class TestRoleTable:
    def test_five_roles(self):
        assert set(ALL_ROLES) == {"director", "admin_contable", "gerente_tienda", "cajero", "asistente_admin"}

    def test_role_permissions_are_known_codes(self):
        codes = set(get_all_permission_codes())
        for definition in ROLE_DEFINITIONS.values():
            assert definition.permissions <= codes, definition.role

    def test_store_scoped_roles(self):
        assert STORE_SCOPED_ROLES == {"gerente_tienda", "cajero"}

    def test_only_director_edits_settings(self):
        holders = {role for role, d in ROLE_DEFINITIONS.items() if "settings:edit" in d.permissions}
        assert holders == {"director"}

    def test_role_names(self):
        assert get_role_name("cajero") == "Cajero"
        assert get_role_name("unknown") is None

    def test_validate_helpers(self):
        assert validate_role("director")
        assert not validate_role("root")
        assert validate_permission_code("closures:create")
        assert not validate_permission_code("closures:approve")


class TestHasPermission:
    def test_permission_codes_match(self):
        assert sorted(get_all_permission_codes()) == ALL_CODES

    def test_roles_match(self):
        assert set(ALL_ROLES) == set(EXPECTED_GRANTS)

    @pytest.mark.parametrize("permission", ALL_CODES)
    @pytest.mark.parametrize("role", sorted(EXPECTED_GRANTS))
    def test_role_grants(self, role, permission):
        expected = permission in EXPECTED_GRANTS[role]

        assert has_permission(make_user(role), permission) is expected

    @pytest.mark.parametrize("role", sorted(EXPECTED_GRANTS))
    def test_effective_permissions_without_overlay(self, role):
        assert set(get_effective_permissions(make_user(role))) == EXPECTED_GRANTS[role]

    def test_no_user_denied(self):
        assert has_permission(None, "dashboard:view") is False

    def test_unknown_role_denied(self):
        assert has_permission(make_user("superuser"), "dashboard:view") is False

    def test_exact_match_only(self):
        assert has_permission(make_user("director"), "closures") is False
        assert has_permission(make_user("director"), "closures:*") is False


class TestExtraPermissions:
    def test_overlay_adds_permission(self):
        user = make_user("cajero", 1, extra=["closures:create"])

        assert has_permission(user, "closures:create")
        assert "closures:create" in get_effective_permissions(user)

    def test_overlay_never_removes_role_grant(self):
        user = make_user("cajero", 1, extra=[])

        assert get_effective_permissions(user) == set(ROLE_DEFINITIONS["cajero"].permissions)

    @pytest.mark.parametrize("code", sorted(PROTECTED_PERMISSIONS))
    def test_protected_codes_ignored(self, code):
        user = make_user("asistente_admin", extra=[code])

        if code in ROLE_DEFINITIONS["asistente_admin"].permissions:
            assert has_permission(user, code)
        else:
            assert not has_permission(user, code)

    def test_cashier_cannot_gain_settings_edit(self):
        user = make_user("cajero", 1, extra=["settings:edit", "all_stores:access"])

        assert not has_permission(user, "settings:edit")
        assert not can_access_store(user, 2)

    def test_unknown_codes_ignored(self):
        user = make_user("cajero", 1, extra=["stores:destroy"])

        assert "stores:destroy" not in get_effective_permissions(user)

    def test_overlay_on_unknown_role_grants_nothing(self):
        assert get_effective_permissions(make_user("ghost", extra=["dashboard:view"])) == set()


class TestStoreAccess:
    @pytest.mark.parametrize("role", ["director", "admin_contable", "asistente_admin"])
    def test_all_store_roles(self, role):
        assert can_access_store(make_user(role), 1)
        assert can_access_store(make_user(role), 99)

    @pytest.mark.parametrize("role", ["gerente_tienda", "cajero"])
    def test_assigned_store_only(self, role):
        user = make_user(role, store_id=1)

        assert can_access_store(user, 1)
        assert not can_access_store(user, 2)

    def test_scoped_role_without_store_denied(self):
        assert not can_access_store(make_user("gerente_tienda"), 1)

    def test_no_user_denied(self):
        assert not can_access_store(None, 1)

    def test_capability_flags(self):
        assert can_manage_users(make_user("admin_contable"))
        assert not can_manage_users(make_user("gerente_tienda"))
        assert can_manage_system(make_user("director"))
        assert not can_manage_system(make_user("admin_contable"))
        assert not can_manage_system(None)
