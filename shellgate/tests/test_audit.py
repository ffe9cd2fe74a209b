"""Tests for security/audit: redaction and audit logging."""

import logging

from shellgate.security.audit import MAX_COMMAND_PREVIEW, _redact, audit, command_preview


def test_redact_dict_redacts_sensitive_keys():
    assert _redact({"token": "x", "shell": "cmd"}) == {"token": "[REDACTED]", "shell": "cmd"}
    assert _redact({"Password": "p"}) == {"Password": "[REDACTED]"}
    assert _redact({"authorization": "Bearer abc"}) == {"authorization": "[REDACTED]"}


def test_redact_nested_and_sequences():
    out = _redact({"a": {"token": "secret", "x": 1}, "b": ({"secret": "s"}, "plain")})
    assert out == {"a": {"token": "[REDACTED]", "x": 1}, "b": [{"secret": "[REDACTED]"}, "plain"]}


def test_redact_plain_value():
    assert _redact("hello") == "hello"
    assert _redact(42) == 42


def test_command_preview_is_bounded():
    assert command_preview("dir") == "dir"
    long = "x" * (MAX_COMMAND_PREVIEW + 10)
    assert command_preview(long) == "x" * MAX_COMMAND_PREVIEW + "..."


def test_audit_logs_event(caplog):
    caplog.set_level(logging.INFO, logger="shellgate.audit")
    audit("command_started", shell="wsl", command="ls")
    assert "command_started" in caplog.text
    assert "wsl" in caplog.text
    assert caplog.records[-1].audit_event == "command_started"


def test_audit_redacts_secrets(caplog):
    caplog.set_level(logging.INFO, logger="shellgate.audit")
    audit("http_request", token="secret123", path="/mcp")
    assert "secret123" not in caplog.text
    assert "[REDACTED]" in caplog.text
