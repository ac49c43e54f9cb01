"""
Unit tests for hub/procedures.py -- server-side procedures.
"""
import os
import sys
import pytest
from datetime import date

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from hub.config import DEFAULT_KPI_QUESTIONS
from hub.procedures import get_current_quarter_week
from hub.store import StoreError

pytestmark = pytest.mark.unit


class TestCurrentQuarterWeek:
    def test_uses_iso_week(self):
        # ISO week 7, one more than the local formula gives
        assert get_current_quarter_week(None, today=date(2025, 2, 10)) == 7

    def test_second_quarter(self):
        # ISO week 20 of 2025 minus 13
        assert get_current_quarter_week(None, today=date(2025, 5, 15)) == 7

    def test_clamped(self):
        assert 1 <= get_current_quarter_week(None, today=date(2027, 1, 1)) <= 13
        assert get_current_quarter_week(None, today=date(2020, 12, 31)) == 13

    def test_callable_through_store(self, store):
        assert 1 <= store.rpc("get_current_quarter_week") <= 13


class TestInitializeKpiQuestions:
    def test_seeds_thirteen_weeks(self, store):
        added = store.rpc("initialize_default_kpi_questions", _company_id="c1", _quarter="Q1", _year=2025)
        rows = store.select("kpi_questions", {"company_id": "c1"}, order_by="week_number")
        assert added == 13
        assert [r["week_number"] for r in rows] == list(range(1, 14))
        assert rows[0]["question_text"] == DEFAULT_KPI_QUESTIONS[0][0]
        assert all(r["quarter"] == "Q1" and r["year"] == 2025 for r in rows)

    def test_idempotent(self, store):
        store.rpc("initialize_default_kpi_questions", _company_id="c1", _quarter="Q1", _year=2025)
        added = store.rpc("initialize_default_kpi_questions", _company_id="c1", _quarter="Q1", _year=2025)
        assert added == 0
        assert len(store.select("kpi_questions")) == 13

    def test_fills_only_empty_weeks(self, store):
        store.insert("kpi_questions", {"company_id": "c1", "question_text": "Custom", "week_number": 4,
                                       "quarter": "Q2", "year": 2025})
        added = store.rpc("initialize_default_kpi_questions", _company_id="c1", _quarter="Q2", _year=2025)
        assert added == 12
        week_4 = store.select("kpi_questions", {"week_number": 4})
        assert [r["question_text"] for r in week_4] == ["Custom"]

    def test_invalid_quarter(self, store):
        with pytest.raises(StoreError):
            store.rpc("initialize_default_kpi_questions", _company_id="c1", _quarter="Q5", _year=2025)


class TestRoleProcedures:
    def _profile(self, store, email="emp@example.com"):
        return store.insert("profiles", {"email": email, "password_hash": "x"})[0]

    def test_assign_role_once(self, store):
        profile = self._profile(store)
        assert store.rpc("admin_assign_role", _target_user=profile["id"], _role="manager") is True
        assert store.rpc("admin_assign_role", _target_user=profile["id"], _role="manager") is False
        assert store.rpc("get_user_roles", _user_id=profile["id"]) == ["manager"]
        assert store.rpc("has_role", _user_id=profile["id"], _role="manager") is True

    def test_invalid_role(self, store):
        profile = self._profile(store)
        with pytest.raises(StoreError):
            store.rpc("admin_assign_role", _target_user=profile["id"], _role="superuser")

    def test_create_company_grants_company_role(self, store):
        profile = self._profile(store, "owner@example.com")
        company_id = store.rpc("create_company_for_user", _company_name="Acme", _user_id=profile["id"])
        assert store.get("companies", company_id)["owner_id"] == profile["id"]
        assert "company" in store.rpc("get_user_roles", _user_id=profile["id"])

    def test_assign_employee(self, store):
        owner = self._profile(store, "owner@example.com")
        employee = self._profile(store)
        company_id = store.rpc("create_company_for_user", _company_name="Acme", _user_id=owner["id"])
        store.rpc("assign_employee_to_company", _company_id=company_id, _employee_id=employee["id"],
                  _job_title="Engineer", _contract_type="full_time", _date_started="2025-01-06")
        links = store.select("employee_companies", {"company_id": company_id})
        assert links[0]["employee_id"] == employee["id"]
        assert store.rpc("get_user_roles", _user_id=employee["id"]) == ["employee"]
