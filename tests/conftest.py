"""Pytest fixtures and configuration for test suite."""
import os
import tempfile
from datetime import date

import pytest
from fastapi.testclient import TestClient

from webfit.api import create_app
from webfit.repos import LocalStorageRepo, SQLiteRepo


@pytest.fixture
def sample_workout_data():
    """Sample workout request body."""
    return {
        "exercise_name": "Running",
        "duration_minutes": 30,
    }


@pytest.fixture
def sample_goal_data():
    """Sample calorie goal request body."""
    return {
        "goal_type": "calorie_burn",
        "target_value": 500,
        "target_date": None,
    }


@pytest.fixture
def sample_profile_data():
    """Sample profile request body."""
    return {
        "name": "Alex",
        "age": 30,
        "height_cm": 175.0,
        "weight_kg": 70.0,
        "gender": "male",
    }


@pytest.fixture
def today():
    return date(2025, 11, 10)


@pytest.fixture
def temp_db():
    """Create a temporary SQLite database for testing."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def temp_storage(tmp_path):
    """Path for a local storage JSON document (not created yet)."""
    return str(tmp_path / "local_storage.json")


@pytest.fixture
def mock_env_sqlite(temp_db, monkeypatch):
    """Mock environment for SQLite mode."""
    monkeypatch.setenv("WEBFIT_STORE", "sqlite")
    monkeypatch.setenv("DB_PATH", temp_db)
    return temp_db


@pytest.fixture
def mock_env_local(temp_storage, monkeypatch):
    """Mock environment for local storage mode."""
    monkeypatch.setenv("WEBFIT_STORE", "local")
    monkeypatch.setenv("WEBFIT_LOCAL_STORAGE", temp_storage)
    return temp_storage


@pytest.fixture
def sqlite_repo(temp_db):
    with SQLiteRepo(temp_db) as repo:
        yield repo


@pytest.fixture
def local_repo():
    with LocalStorageRepo() as repo:
        yield repo


@pytest.fixture(params=["sqlite", "local"])
def repo(request, temp_db):
    """Run a test once against each backing store."""
    store = SQLiteRepo(temp_db) if request.param == "sqlite" else LocalStorageRepo()
    with store:
        yield store


@pytest.fixture
def client(sqlite_repo):
    """HTTP test client bound to a temporary SQLite store."""
    with TestClient(create_app(sqlite_repo)) as c:
        yield c
