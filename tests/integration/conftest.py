"""
Integration test conftest -- test database setup and FastAPI TestClient.
"""
import os
import sys
import uuid
import pytest
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

# Force SQLite for integration tests
os.environ["DATABASE_URL"] = ""
os.environ["SECRET_KEY"] = "integration-test-secret-key"

from starlette.testclient import TestClient

TEST_PASSWORD = "testpass123"


@pytest.fixture(scope="session")
def test_db():
    """Initialize a fresh SQLite test database."""
    import hub.config as config
    import hub.database as database_mod

    test_db_path = Path(__file__).resolve().parent.parent.parent / "test_hub.db"
    config.DATABASE_PATH = test_db_path
    database_mod.DATABASE_PATH = test_db_path

    if test_db_path.exists():
        test_db_path.unlink()

    from hub.database import init_database
    init_database()

    yield test_db_path

    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture(scope="session")
def client(test_db):
    """Create a TestClient for the FastAPI app."""
    from hub.main import app
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture(autouse=True)
def _signed_out(request):
    """Every test starts without a session cookie."""
    if "client" in request.fixturenames:
        request.getfixturevalue("client").cookies.clear()


@pytest.fixture
def store(test_db):
    """DataStore over the integration database."""
    from hub.store import get_store
    return get_store()


@pytest.fixture
def create_test_user(test_db):
    """Create a user with the given roles; returns the user id."""
    from hub.auth import create_user

    def _create(*roles, email=None, first_name="Test", last_name="User"):
        email = email or f"{'-'.join(roles) or 'user'}-{uuid.uuid4().hex[:8]}@example.com"
        user_id = create_user(email, TEST_PASSWORD, first_name, last_name, roles=list(roles) or None)
        return {"id": user_id, "email": email}

    return _create


@pytest.fixture
def login(client):
    """Sign the client in as the given user."""
    def _login(user):
        client.cookies.clear()
        response = client.post(
            "/login",
            data={"email": user["email"], "password": TEST_PASSWORD},
            follow_redirects=False,
        )
        assert response.status_code == 302
        return response

    return _login


@pytest.fixture
def company_owner(create_test_user, store):
    """A company account with its company: (user, company_id)."""
    owner = create_test_user("employee", first_name="Olivia", last_name="Owner")
    company_id = store.rpc("create_company_for_user", _company_name=f"Acme {owner['id'][:6]}",
                           _user_id=owner["id"])
    return owner, company_id


@pytest.fixture
def employee_of(create_test_user, store):
    """Create an employee linked to a company; returns the user."""
    def _employee(company_id, first_name="Jane", last_name="Doe"):
        employee = create_test_user(first_name=first_name, last_name=last_name)
        store.rpc("assign_employee_to_company", _company_id=company_id, _employee_id=employee["id"],
                  _job_title="Engineer", _contract_type="full_time", _date_started="2025-01-06")
        return employee

    return _employee
