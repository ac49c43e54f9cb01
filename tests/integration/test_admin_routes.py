"""
Integration tests for admin routes -- users, roles, companies and KPI cycles.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "integration-test-secret-key")

pytestmark = pytest.mark.integration


@pytest.fixture
def admin(create_test_user, login):
    user = create_test_user("admin")
    login(user)
    return user


class TestAdminPages:
    @pytest.mark.parametrize("path", [
        "/admin/users", "/admin/create-user", "/admin/managers", "/admin/companies",
        "/admin/surveys", "/admin/metrics", "/admin/kpi-cycles",
    ])
    def test_pages_load(self, client, admin, path):
        assert client.get(path).status_code == 200

    def test_non_admin_blocked(self, client, create_test_user, login):
        login(create_test_user("company"))
        response = client.get("/admin/users", follow_redirects=False)
        assert response.headers["location"] == "/dashboard?error=unauthorized"


class TestUserManagement:
    def test_create_user(self, client, admin, store):
        response = client.post(
            "/admin/create-user",
            data={"email": "created@example.com", "password": "password123", "role": "manager"},
            follow_redirects=False,
        )
        assert response.headers["location"].startswith("/admin/users?message=")
        profile = store.select("profiles", {"email": "created@example.com"})[0]
        assert store.rpc("get_user_roles", _user_id=profile["id"]) == ["manager"]

    def test_create_user_invalid_role(self, client, admin):
        response = client.post(
            "/admin/create-user",
            data={"email": "bad-role@example.com", "password": "password123", "role": "superuser"},
            follow_redirects=False,
        )
        assert "error=" in response.headers["location"]

    def test_assign_role_twice(self, client, admin, create_test_user, store):
        target = create_test_user("employee")
        client.post(f"/admin/users/{target['id']}/roles", data={"role": "manager"})
        response = client.post(f"/admin/users/{target['id']}/roles", data={"role": "manager"},
                               follow_redirects=False)
        assert "already" in response.headers["location"]
        assert store.rpc("get_user_roles", _user_id=target["id"]).count("manager") == 1

    def test_cannot_deactivate_self(self, client, admin):
        response = client.post(f"/admin/users/{admin['id']}/toggle-active", follow_redirects=False)
        assert "error=" in response.headers["location"]

    def test_deactivated_user_cannot_login(self, client, admin, create_test_user):
        target = create_test_user("employee")
        client.post(f"/admin/users/{target['id']}/toggle-active")
        client.cookies.clear()
        response = client.post("/login", data={"email": target["email"], "password": "testpass123"})
        assert response.status_code == 401


class TestCompanies:
    def test_create_company_for_owner(self, client, admin, create_test_user, store):
        owner = create_test_user("employee")
        response = client.post("/admin/companies", data={"name": "Globex", "owner_email": owner["email"]},
                               follow_redirects=False)
        assert "message=" in response.headers["location"]
        assert store.select("companies", {"owner_id": owner["id"]})[0]["name"] == "Globex"
        assert "company" in store.rpc("get_user_roles", _user_id=owner["id"])

    def test_unknown_owner(self, client, admin):
        response = client.post("/admin/companies", data={"name": "Ghost", "owner_email": "ghost@example.com"},
                               follow_redirects=False)
        assert "error=" in response.headers["location"]
