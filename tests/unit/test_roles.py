"""
Unit tests for hub/roles.py -- role checks, navigation and micro-apps.
"""
import os
import sys
import pytest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from hub.roles import (
    ROLE_ADMIN, ROLE_COMPANY, ROLE_MANAGER, ROLE_EMPLOYEE, ALL_ROLES,
    get_user_roles, sort_roles, get_primary_role, get_role_display_name,
    has_role, has_any_role, is_admin, nav_items_for, available_apps, portal_for,
)

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from __mocks__.fixtures import ADMIN_USER, COMPANY_USER, MANAGER_USER, EMPLOYEE_USER

pytestmark = pytest.mark.unit


class TestRoleOrdering:
    def test_admin_is_highest(self):
        assert ALL_ROLES[0] == ROLE_ADMIN

    def test_sort_roles_dedupes_and_drops_unknown(self):
        assert sort_roles(["employee", "manager", "employee", "janitor"]) == [ROLE_MANAGER, ROLE_EMPLOYEE]

    def test_primary_role(self):
        assert get_primary_role(["employee", "company"]) == ROLE_COMPANY
        assert get_primary_role([]) is None

    def test_display_name_falls_back_to_value(self):
        assert get_role_display_name("unknown") == "unknown"

    def test_get_user_roles_uses_procedure(self):
        store = MagicMock()
        store.rpc.return_value = ["employee", "admin"]
        assert get_user_roles(store, "u1") == [ROLE_ADMIN, ROLE_EMPLOYEE]
        store.rpc.assert_called_once_with("get_user_roles", _user_id="u1")

    def test_get_user_roles_without_user(self):
        assert get_user_roles(MagicMock(), None) == []


class TestRoleChecks:
    def test_has_role(self):
        assert has_role(MANAGER_USER, ROLE_MANAGER)
        assert not has_role(EMPLOYEE_USER, ROLE_MANAGER)

    def test_admin_passes_every_check(self):
        for role in ALL_ROLES:
            assert has_role(ADMIN_USER, role)

    def test_no_user(self):
        assert not has_role(None, ROLE_EMPLOYEE)
        assert not is_admin(None)

    def test_has_any_role(self):
        assert has_any_role(COMPANY_USER, [ROLE_MANAGER, ROLE_COMPANY])
        assert not has_any_role(EMPLOYEE_USER, [ROLE_MANAGER, ROLE_COMPANY])

    def test_is_admin(self):
        assert is_admin(ADMIN_USER)
        assert not is_admin(COMPANY_USER)


class TestNavigation:
    def test_company_nav(self):
        ids = [item["id"] for item in nav_items_for(ROLE_COMPANY)]
        assert ids == ["dashboard", "employees", "surveys", "rewards", "requests",
                       "resources", "metrics", "kpi-questions"]

    def test_employee_nav(self):
        ids = [item["id"] for item in nav_items_for(ROLE_EMPLOYEE)]
        assert ids == ["home", "surveys", "feedback", "achievements", "rewards", "requests", "settings"]

    def test_manager_nav(self):
        ids = [item["id"] for item in nav_items_for(ROLE_MANAGER)]
        assert ids == ["employees", "kpi-surveys", "requests", "metrics", "engagement", "surveys"]

    def test_admin_nav_includes_kpi_cycles(self):
        assert "kpi-cycles" in [item["id"] for item in nav_items_for(ROLE_ADMIN)]

    def test_unknown_portal_has_no_nav(self):
        assert nav_items_for("login") == []


class TestApps:
    def test_employee_apps(self):
        assert [a["id"] for a in available_apps([ROLE_EMPLOYEE])] == ["onboarding", "employee"]

    def test_admin_sees_every_app(self):
        assert len(available_apps([ROLE_ADMIN])) == 5

    def test_any_matching_role(self):
        ids = [a["id"] for a in available_apps([ROLE_MANAGER, ROLE_EMPLOYEE])]
        assert ids == ["onboarding", "employee", "manager"]

    def test_no_roles(self):
        assert available_apps([]) == []
        assert available_apps(None) == []

    def test_portal_for(self):
        assert portal_for([ROLE_EMPLOYEE, ROLE_COMPANY]) == "/company"
        assert portal_for([]) == "/dashboard"
