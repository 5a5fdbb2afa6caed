import json
import logging

from userapi.logger import JsonFormatter, setup_logging
from userapi.middleware import REDACTED, sanitize_body


def test_sanitize_body():
    body = {"email": "a@b.c", "password": "hunter2", "token": "", "apiKey": "k"}
    clean = sanitize_body(body)
    assert clean == {"email": "a@b.c", "password": REDACTED, "token": "", "apiKey": REDACTED}
    assert body["password"] == "hunter2"
    assert sanitize_body(None) is None
    assert sanitize_body([1, 2]) == [1, 2]


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("userapi.http", logging.WARNING, __file__, 1, "GET %s", ("/x",), None)
    record.statusCode = 404
    line = json.loads(JsonFormatter().format(record))
    assert line["message"] == "GET /x"
    assert line["level"] == "warning"
    assert line["logger"] == "userapi.http"
    assert line["statusCode"] == 404
    assert line["timestamp"].endswith("Z")


def test_setup_logging_installs_one_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("INFO", "json")
        setup_logging("DEBUG", "human")
        ours = [h for h in root.handlers if getattr(h, "_userapi", False)]
        assert len(ours) == 1
        assert root.level == logging.DEBUG
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
        root.setLevel(level)


def test_requests_are_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger="userapi.http"):
        client.get("/api/users/nope")
    messages = [r.getMessage() for r in caplog.records if r.name == "userapi.http"]
    assert "GET /api/users/nope" in messages
    assert any(m.startswith("GET /api/users/nope 404") for m in messages)
    assert any(r.levelno == logging.WARNING for r in caplog.records if r.name == "userapi.http")
