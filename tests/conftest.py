"""
Root conftest.py -- shared fixtures for all test levels.
"""
import os
import sys
import tempfile
import pytest

# Ensure hub is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Force SQLite for testing (never hit production PostgreSQL)
os.environ["DATABASE_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="hub-storage-"))


@pytest.fixture
def store(tmp_path, monkeypatch):
    """DataStore backed by a fresh SQLite file."""
    import hub.database as database_mod
    from hub.procedures import PROCEDURES
    from hub.store import DataStore

    monkeypatch.setattr(database_mod, "DATABASE_PATH", tmp_path / "hub_test.db")
    database_mod.init_database()
    return DataStore(PROCEDURES)
