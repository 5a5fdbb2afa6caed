from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from userapi import config
from userapi.main import app

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "users.db"
    monkeypatch.setattr(config, "DATABASE_PATH", str(path))
    monkeypatch.setattr(config, "ENTITIES_FILE", str(ROOT / "config" / "entities.yaml"))
    return path


@pytest.fixture
def client(db_path):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(client):
    def _make(first="Alice", last="Smith", email=None, bio=None):
        body = {
            "firstName": first,
            "lastName": last,
            "email": email or f"{first.lower()}.{last.lower()}@example.com",
        }
        if bio is not None:
            body["bio"] = bio
        res = client.post("/api/users", json=body)
        assert res.status_code == 201, res.text
        return res.json()

    return _make
