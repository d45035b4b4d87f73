"""
Pytest fixtures: an in-memory store swapped in for the shared connection.
"""
import pytest
from fastapi.testclient import TestClient

from devtime import db
from devtime.timeutil import now_ms
from devtime.users import create_user


@pytest.fixture
def conn(monkeypatch):
    conn = db.connect(":memory:")
    monkeypatch.setattr(db, "_conn", conn)
    yield conn
    conn.close()


@pytest.fixture
def user(conn):
    return create_user("dev@example.com", "Dev")


@pytest.fixture
def token(user):
    return user["api_token"]


@pytest.fixture
def other_user(conn):
    return create_user("other@example.com", "Other")


@pytest.fixture
def client(conn):
    from devtime.main import app

    return TestClient(app)


def make_activity(**overrides):
    data = {
        "projectPath": "/home/dev/code/api",
        "filePath": "main.go",
        "language": "go",
        "timestamp": now_ms(),
        "duration": 500,
        "editor": "vscode",
    }
    data.update(overrides)
    return data


def make_file_activity(**overrides):
    data = {
        "projectPath": "/home/dev/code/api",
        "commitHash": "c1",
        "branch": "main",
        "filePath": "main.go",
        "language": "go",
        "totalDuration": 300,
        "activityCount": 3,
        "firstActivityAt": 1_700_000_000_000,
        "lastActivityAt": 1_700_000_300_000,
        "editor": "vscode",
    }
    data.update(overrides)
    return data


def make_commit(**overrides):
    data = {
        "projectPath": "/home/dev/code/api",
        "commitHash": "c1",
        "message": "Add handler",
        "author": "Dev",
        "authorEmail": "dev@example.com",
        "timestamp": 1_700_000_600_000,
        "filesChanged": 2,
        "linesAdded": 40,
        "linesDeleted": 3,
        "branch": "main",
    }
    data.update(overrides)
    return data


def make_daily_stats(**overrides):
    data = {
        "date": "2026-03-09",
        "projectPath": "/home/dev/code/api",
        "totalDuration": 100,
        "filesEdited": 1,
        "commitCount": 1,
    }
    data.update(overrides)
    data.setdefault("languageBreakdown", {"go": data["totalDuration"]})
    return data
