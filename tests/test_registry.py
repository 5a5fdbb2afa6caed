import json

import pytest

from userapi.database import init_schema
from userapi.registry import Registry


@pytest.fixture
def schema(db_path):
    init_schema()


def write_yaml(tmp_path, body):
    path = tmp_path / "entities.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_users_table_is_described(schema, tmp_path):
    reg = Registry(write_yaml(tmp_path, "entities:\n  users:\n    table: users\n    maxPageSize: 50\n"))
    reg.load_entities()
    entry = reg.ensure_entity("users")
    assert entry["table"] == "users"
    assert entry["maxPageSize"] == 50
    assert entry["columns"] == {
        "id": "TEXT",
        "first_name": "TEXT",
        "last_name": "TEXT",
        "email": "TEXT",
        "bio": "TEXT",
        "is_active": "BOOLEAN",
        "created_at": "TIMESTAMP",
        "updated_at": "TIMESTAMP",
    }
    assert reg.ensure_entity("users") is entry


def test_json_mapping(schema, tmp_path):
    path = tmp_path / "entities.json"
    path.write_text(json.dumps({"entities": {"people": {"table": "users"}}}), encoding="utf-8")
    reg = Registry(path)
    reg.load_entities()
    assert "email" in reg.ensure_entity("people")["columns"]


def test_unknown_entity(schema, tmp_path):
    reg = Registry(write_yaml(tmp_path, "entities:\n  users:\n    table: users\n"))
    reg.load_entities()
    with pytest.raises(KeyError):
        reg.ensure_entity("orders")


def test_missing_table_has_no_columns(schema, tmp_path):
    reg = Registry(write_yaml(tmp_path, "entities:\n  ghosts:\n    table: ghosts\n"))
    reg.load_entities()
    with pytest.raises(RuntimeError):
        reg.ensure_entity("ghosts")


def test_bad_mapping(tmp_path):
    reg = Registry(write_yaml(tmp_path, "entities:\n  users:\n    view: users\n"))
    with pytest.raises(RuntimeError, match="Bad entity mapping"):
        reg.load_entities()


def test_missing_file(tmp_path):
    with pytest.raises(RuntimeError, match="not found"):
        Registry(tmp_path / "nope.yaml").load_entities()


def test_refresh_all_reports_each_entity(schema, tmp_path):
    reg = Registry(write_yaml(tmp_path, "entities:\n  users:\n    table: users\n  ghosts:\n    table: ghosts\n"))
    summary = reg.refresh_all()
    assert summary["users"] == "ok (8 cols)"
    assert summary["ghosts"] == "error: table 'ghosts' has no columns"
