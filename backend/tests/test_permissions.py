"""
Role-to-permission mapping tests.
"""

import pytest

from warehouse.permissions import (
    PermissionCategory,
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    get_role_permissions,
    role_has_permission,
    validate_permission_code,
)


class TestRolePermissions:

    def test_admin_has_everything(self):
        assert get_role_permissions("admin") == set(get_all_permission_codes())

    @pytest.mark.parametrize("code", ["VIEW_PRODUCTS", "CREATE_SALE", "PROCESS_RETURN", "MANAGE_DEBTS"])
    def test_cashier_basics(self, code):
        assert role_has_permission("user", code)
        assert role_has_permission("assistant-admin", code)

    @pytest.mark.parametrize("code", ["MANAGE_PRODUCTS", "DELETE_SALE", "VIEW_REPORTS", "MANAGE_USERS", "SYSTEM_ADMIN"])
    def test_cashier_denied(self, code):
        assert not role_has_permission("user", code)

    def test_assistant_admin_adds_reports_only(self):
        extra = get_role_permissions("assistant-admin") - get_role_permissions("user")
        assert extra == {"VIEW_REPORTS"}

    def test_unknown_role_has_nothing(self):
        assert get_role_permissions("guest") == set()


class TestDefinitions:

    def test_codes_are_unique(self):
        codes = get_all_permission_codes()
        assert len(codes) == len(set(codes))

    def test_lookup(self):
        definition = get_permission_definition("CREATE_SALE")
        assert definition["category"] == PermissionCategory.SALES
        assert get_permission_definition("NOPE") is None
        assert validate_permission_code("VIEW_REPORTS")
        assert not validate_permission_code("NOPE")

    def test_every_category_is_populated(self):
        for category in (PermissionCategory.INVENTORY, PermissionCategory.SALES, PermissionCategory.DEBTS,
                         PermissionCategory.REPORTS, PermissionCategory.USERS, PermissionCategory.SYSTEM):
            assert get_permissions_by_category(category)
