"""Tests for core/logging_config: redaction, StructuredFormatter, setup_logging."""

import io
import json
import logging
import sys

import pytest

from shellgate.core.logging_config import StructuredFormatter, _redact, setup_logging


def _record(msg, level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="test", level=level, pathname="", lineno=0, msg=msg, args=(), exc_info=exc_info
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_redact_string_with_token():
    assert _redact("bearer abc123") == "[REDACTED]"
    assert _redact("token=xyz") == "[REDACTED]"
    assert _redact("hello") == "hello"


def test_redact_containers():
    assert _redact({"k": "password: x", "a": "normal"}) == {"k": "[REDACTED]", "a": "normal"}
    assert _redact(["Authorization: y"]) == ["[REDACTED]"]


def test_structured_formatter_json():
    data = json.loads(StructuredFormatter(use_json=True).format(_record("hello")))
    assert data["message"] == "hello"
    assert data["level"] == "INFO"
    assert data["logger"] == "test"


def test_structured_formatter_extra_fields_are_redacted():
    out = StructuredFormatter(use_json=True).format(
        _record("audit", audit_event="command_started", header="Bearer s3cret")
    )
    data = json.loads(out)
    assert data["audit_event"] == "command_started"
    assert data["header"] == "[REDACTED]"
    assert "s3cret" not in out


def test_structured_formatter_key_value():
    out = StructuredFormatter(use_json=False).format(_record("warn", level=logging.WARNING))
    assert "message='warn'" in out
    assert "WARNING" in out


def test_structured_formatter_with_exc_info():
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()
    data = json.loads(StructuredFormatter().format(_record("failed", logging.ERROR, exc_info)))
    assert "ValueError" in data["exception"]


@pytest.fixture
def clean_root(monkeypatch):
    """Root logger without handlers; pytest installs its own per phase, so tests call it."""

    root = logging.getLogger()
    saved_level = root.level

    def _clean():
        monkeypatch.setattr(root, "handlers", [])
        return root

    yield _clean
    root.setLevel(saved_level)


def test_setup_logging_writes_to_given_stream(clean_root):
    root = clean_root()
    stream = io.StringIO()
    setup_logging(level="WARNING", use_json=True, stream=stream)
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    logging.getLogger("shellgate.x").warning("careful")
    assert json.loads(stream.getvalue().strip())["message"] == "careful"


def test_setup_logging_is_idempotent(clean_root):
    root = clean_root()
    setup_logging(level="INFO", stream=io.StringIO())
    setup_logging(level="DEBUG", stream=io.StringIO())
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG
