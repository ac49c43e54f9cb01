"""
Integration tests for the manager portal -- team and weekly KPI check-ins.
"""
import os
import sys
import pytest
from datetime import date

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "integration-test-secret-key")

pytestmark = pytest.mark.integration


@pytest.fixture
def team(company_owner, employee_of, create_test_user, store, login):
    """A signed-in manager with one direct report: (manager, employee, company_id)."""
    _, company_id = company_owner
    employee = employee_of(company_id, first_name="Ella", last_name="Report")
    manager = create_test_user("manager", "employee")
    store.insert("manager_employees", {"manager_id": manager["id"], "employee_id": employee["id"],
                                       "company_id": company_id})
    login(manager)
    return manager, employee, company_id


class TestPages:
    @pytest.mark.parametrize("path", [
        "/manager/employees", "/manager/kpi-surveys", "/manager/requests",
        "/manager/metrics", "/manager/engagement", "/manager/surveys",
    ])
    def test_pages_load(self, client, team, path):
        assert client.get(path).status_code == 200

    def test_team_listed(self, client, team):
        assert "Ella Report" in client.get("/manager/employees").text


class TestKpiCheckins:
    def test_submit_checkin(self, client, team, store):
        from hub.quarters import quarter_code, week_start

        manager, employee, company_id = team
        quarter, year = quarter_code(date.today())
        store.rpc("initialize_default_kpi_questions", _company_id=company_id, _quarter=quarter, _year=year)

        response = client.post(
            "/manager/kpi-surveys",
            data={"employee_id": employee["id"], "mood_rating": "3", "kpi_score": "4",
                  "kpi_feedback": "Great sprint"},
            follow_redirects=False,
        )
        assert "message=" in response.headers["location"]

        row = store.select("employee_kpi_surveys", {"manager_id": manager["id"]})[0]
        assert row["employee_name"] == "Ella Report"
        assert row["kpi_score"] == 4
        assert row["week_start_date"] == week_start(date.today()).isoformat()
        assert row["kpi_question_text"]

    def test_checkin_without_question(self, client, team, store):
        manager, employee, _ = team
        client.post("/manager/kpi-surveys",
                    data={"employee_id": employee["id"], "mood_rating": "2", "kpi_score": "3"})
        row = store.select("employee_kpi_surveys", {"manager_id": manager["id"]})[0]
        assert row["kpi_question_id"] is None

    def test_invalid_score(self, client, team, store):
        manager, employee, _ = team
        response = client.post("/manager/kpi-surveys",
                               data={"employee_id": employee["id"], "mood_rating": "2", "kpi_score": "9"},
                               follow_redirects=False)
        assert "error=" in response.headers["location"]
        assert store.select("employee_kpi_surveys", {"manager_id": manager["id"]}) == []

    def test_employee_outside_team(self, client, team, create_test_user, store):
        manager, _, _ = team
        stranger = create_test_user()
        response = client.post("/manager/kpi-surveys",
                               data={"employee_id": stranger["id"], "mood_rating": "2", "kpi_score": "3"},
                               follow_redirects=False)
        assert "error=" in response.headers["location"]


class TestRequests:
    def test_reject_team_request(self, client, team, store):
        from hub.employee_requests import submit_request

        _, employee, _ = team
        row = submit_request(store, employee["id"], "training", "Conference ticket")
        client.post(f"/manager/requests/{row['id']}/status", data={"status": "rejected"})
        assert store.get("employee_requests", row["id"])["status"] == "rejected"
