"""Structured logging for the gateway. Secrets never reach the output."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional, TextIO

_SENSITIVE_MARKERS = ("token", "password", "secret", "bearer", "authorization")

# attributes every LogRecord carries; anything else came in through `extra=`
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _redact(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_redact(v) for v in obj]
    if isinstance(obj, str) and any(s in obj.lower() for s in _SENSITIVE_MARKERS):
        return "[REDACTED]"
    return obj


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: _redact(v) for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


class StructuredFormatter(logging.Formatter):
    """One line per record: JSON, or key=value pairs when use_json is off."""

    def __init__(self, use_json: bool = True) -> None:
        super().__init__()
        self.use_json = use_json

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if self.use_json:
            return json.dumps(entry, default=str)
        return " ".join(f"{k}={v!r}" for k, v in entry.items())


def setup_logging(level: str = "INFO", use_json: bool = True, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger once; later calls only change the level.
    Output goes to stderr by default because stdout carries the stdio protocol.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if root.handlers:
        return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter(use_json=use_json))
    root.addHandler(handler)
