"""
Unit tests for hub/levels.py -- points to level tiers.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from hub.levels import DEFAULT_LEVEL_POLICY, LevelPolicy

pytestmark = pytest.mark.unit


class TestDefaultPolicy:
    @pytest.mark.parametrize("points,name", [
        (0, "Newcomer"),
        (99, "Newcomer"),
        (100, "Contributor"),
        (299, "Contributor"),
        (300, "Achiever"),
        (600, "Expert"),
        (1000, "Champion"),
        (1499, "Champion"),
        (1500, "Legend"),
        (250000, "Legend"),
    ])
    def test_tier_names(self, points, name):
        assert DEFAULT_LEVEL_POLICY.level_for(points).name == name

    def test_level_numbers_increase(self):
        numbers = [DEFAULT_LEVEL_POLICY.level_for(p).number for p in (0, 100, 300, 600, 1000, 1500)]
        assert numbers == [1, 2, 3, 4, 5, 6]

    def test_progress_within_tier(self):
        level = DEFAULT_LEVEL_POLICY.level_for(200)
        assert level.lower == 100
        assert level.upper == 300
        assert level.progress_percent == pytest.approx(50.0)

    def test_start_of_tier_is_zero_percent(self):
        assert DEFAULT_LEVEL_POLICY.level_for(600).progress_percent == 0.0

    def test_top_tier_reports_full_progress(self):
        level = DEFAULT_LEVEL_POLICY.level_for(5000)
        assert level.is_top
        assert level.upper is None
        assert level.progress_percent == 100.0

    def test_negative_points_clamped(self):
        assert DEFAULT_LEVEL_POLICY.level_for(-20).progress_percent == 0.0


class TestCustomPolicy:
    def test_injected_table(self):
        policy = LevelPolicy([(10, "Bronze"), (20, "Silver")], "Gold")
        assert policy.level_for(5).name == "Bronze"
        assert policy.level_for(15).name == "Silver"
        assert policy.level_for(20).name == "Gold"

    def test_unsorted_thresholds_rejected(self):
        with pytest.raises(ValueError):
            LevelPolicy([(20, "Silver"), (10, "Bronze")], "Gold")

    def test_duplicate_thresholds_rejected(self):
        with pytest.raises(ValueError):
            LevelPolicy([(10, "Bronze"), (10, "Silver")], "Gold")
