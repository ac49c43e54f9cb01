"""
Unit tests for scripts/init_db.py, scripts/create_admin.py and scripts/award_achievement.py.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from hub.auth import authenticate_user
from scripts.award_achievement import award_achievement
from scripts.create_admin import create_admin_user
from scripts.init_db import DEMO_ACHIEVEMENTS, seed_achievements

pytestmark = pytest.mark.unit


class TestSeedAchievements:
    def test_seeds_catalog_once(self, store):
        assert seed_achievements(store) == len(DEMO_ACHIEVEMENTS)
        assert seed_achievements(store) == 0
        assert len(store.select("achievements")) == len(DEMO_ACHIEVEMENTS)

    def test_prerequisites_linked(self, store):
        seed_achievements(store)
        by_title = {row["title"]: row for row in store.select("achievements")}
        assert by_title["Voice of the Team"]["prerequisite_id"] == by_title["First Steps"]["id"]
        assert by_title["First Steps"]["prerequisite_id"] is None


class TestCreateAdmin:
    def test_creates_admin(self, store):
        user_id = create_admin_user("root@example.com", "rootpass123")
        assert authenticate_user("root@example.com", "rootpass123")["roles"] == ["admin"]
        assert store.rpc("get_user_roles", _user_id=user_id) == ["admin"]

    def test_existing_user_promoted(self, store):
        from hub.auth import create_user

        user_id = create_user("boss@example.com", "password123")
        assert create_admin_user("boss@example.com", "ignored") == user_id
        assert "admin" in store.rpc("get_user_roles", _user_id=user_id)


class TestAwardAchievement:
    def test_progress_until_unlocked(self, store):
        from hub.auth import create_user

        seed_achievements(store)
        user_id = create_user("ana@example.com", "password123")

        row = award_achievement("ana@example.com", "Voice of the Team", 3)
        assert row["progress"] == 3
        assert not row["unlocked"]

        row = award_achievement("ANA@example.com", "Voice of the Team", 2)
        assert row["unlocked"] == 1
        saved = store.select("user_achievements", {"user_id": user_id})
        assert len(saved) == 1
        assert saved[0]["unlocked_at"]

    def test_unknown_user(self, store):
        seed_achievements(store)
        with pytest.raises(ValueError, match="No user"):
            award_achievement("ghost@example.com", "First Steps")

    def test_unknown_achievement(self, store):
        from hub.auth import create_user

        create_user("ana@example.com", "password123")
        with pytest.raises(ValueError, match="No achievement"):
            award_achievement("ana@example.com", "Moonwalker")
