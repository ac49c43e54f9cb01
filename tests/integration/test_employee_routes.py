"""
Integration tests for the employee portal -- achievements, rewards, requests,
surveys and feedback.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "integration-test-secret-key")

pytestmark = pytest.mark.integration


@pytest.fixture
def employee(company_owner, employee_of, login):
    """A signed-in employee of a company: (employee, company_id)."""
    _, company_id = company_owner
    user = employee_of(company_id)
    login(user)
    return user, company_id


def _earn(store, user_id, points):
    from hub.achievements import record_progress

    achievement = store.insert("achievements", {"category": "milestone", "title": f"Worth {points}",
                                                "points": points, "required_count": 1})[0]
    record_progress(store, user_id, achievement["id"])
    return achievement


class TestPages:
    @pytest.mark.parametrize("path", [
        "/employee/home", "/employee/surveys", "/employee/feedback", "/employee/achievements",
        "/employee/rewards", "/employee/requests",
    ])
    def test_pages_load(self, client, employee, path):
        assert client.get(path).status_code == 200

    def test_settings_redirect(self, client, employee):
        response = client.get("/employee/settings", follow_redirects=False)
        assert response.headers["location"] == "/settings"


class TestAchievements:
    def test_empty_catalog(self, client, employee, store):
        ids = [row["id"] for row in store.select("achievements")]
        if ids:
            store.delete("achievements", {"id": ids})
        response = client.get("/employee/achievements")
        assert "No achievements available yet. Check back soon!" in response.text

    def test_unlocked_achievement_shown(self, client, employee, store):
        user, _ = employee
        achievement = _earn(store, user["id"], 120)
        response = client.get("/employee/achievements")
        assert achievement["title"] in response.text
        assert "<svg" in response.text


class TestRewards:
    def test_redeem(self, client, employee, store):
        user, company_id = employee
        _earn(store, user["id"], 100)
        reward = store.insert("rewards", {"company_id": company_id, "title": "Coffee voucher",
                                          "points_cost": 60, "stock_quantity": 2, "active": 1})[0]

        response = client.post(f"/employee/rewards/{reward['id']}/redeem", follow_redirects=False)
        assert "message=" in response.headers["location"]
        assert "40%20points" in response.headers["location"]
        assert store.get("rewards", reward["id"])["stock_quantity"] == 1

        response = client.post(f"/employee/rewards/{reward['id']}/redeem", follow_redirects=False)
        assert "Not%20enough%20points" in response.headers["location"]
        assert len(store.select("reward_redemptions", {"user_id": user["id"]})) == 1

    def test_reward_of_other_company(self, client, employee, store):
        user, _ = employee
        _earn(store, user["id"], 500)
        reward = store.insert("rewards", {"company_id": "someone-else", "title": "Hidden",
                                          "points_cost": 10, "active": 1})[0]
        response = client.post(f"/employee/rewards/{reward['id']}/redeem", follow_redirects=False)
        assert "Reward%20not%20found" in response.headers["location"]


class TestRequests:
    def test_submit(self, client, employee, store):
        user, _ = employee
        response = client.post(
            "/employee/requests",
            data={"request_type": "time_off", "title": "Long weekend",
                  "start_date": "2025-05-02", "end_date": "2025-05-05"},
            follow_redirects=False,
        )
        assert "message=" in response.headers["location"]
        assert store.select("employee_requests", {"user_id": user["id"]})[0]["status"] == "pending"

    def test_end_before_start(self, client, employee):
        response = client.post(
            "/employee/requests",
            data={"request_type": "time_off", "title": "Backwards",
                  "start_date": "2025-05-05", "end_date": "2025-05-02"},
            follow_redirects=False,
        )
        assert "error=" in response.headers["location"]


class TestSurveys:
    def _survey(self, store, company_id, owner_id):
        survey = store.insert("surveys", {"company_id": company_id, "created_by": owner_id,
                                          "title": "Pulse", "status": "active"})[0]
        scale = store.insert("survey_questions", {"survey_id": survey["id"], "question_text": "Happy?",
                                                  "question_type": "scale", "order_index": 0})[0]
        text = store.insert("survey_questions", {"survey_id": survey["id"], "question_text": "Why?",
                                                 "question_type": "text", "order_index": 1, "required": 0})[0]
        return survey, scale, text

    def test_answer_once(self, client, employee, company_owner, store):
        user, company_id = employee
        owner, _ = company_owner
        survey, scale, text = self._survey(store, company_id, owner["id"])

        response = client.post(f"/employee/surveys/{survey['id']}",
                               data={f"q_{scale['id']}": "4", f"q_{text['id']}": "Good team"},
                               follow_redirects=False)
        assert "message=" in response.headers["location"]
        answers = store.select("survey_responses", {"survey_id": survey["id"], "user_id": user["id"]})
        assert {a["question_id"]: a["response_value"] for a in answers}[scale["id"]] == 4

        response = client.post(f"/employee/surveys/{survey['id']}", data={f"q_{scale['id']}": "5"},
                               follow_redirects=False)
        assert "already%20completed" in response.headers["location"]

    def test_required_answer_missing(self, client, employee, company_owner, store):
        _, company_id = employee
        owner, _ = company_owner
        survey, _, _ = self._survey(store, company_id, owner["id"])
        response = client.post(f"/employee/surveys/{survey['id']}", data={}, follow_redirects=False)
        assert "error=" in response.headers["location"]


class TestFeedback:
    def test_feedback_notifies_owner(self, client, employee, company_owner, store):
        owner, _ = company_owner
        client.post("/employee/feedback",
                    data={"category": "management", "rating": "4", "feedback": "More 1:1s please"})
        notes = store.select("notifications", {"user_id": owner["id"], "type": "feedback"})
        assert notes[0]["title"] == "Feedback: Management (4/5)"

    def test_blank_feedback(self, client, employee):
        response = client.post("/employee/feedback", data={"feedback": "   "}, follow_redirects=False)
        assert "error=" in response.headers["location"]
