"""Structured audit log. Tokens and credentials never reach the output."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("shellgate.audit")

REDACT_KEYS = frozenset({"token", "password", "secret", "api_key", "authorization", "cookie"})

# commands can be long; audit lines keep a bounded preview
MAX_COMMAND_PREVIEW = 500


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: "[REDACTED]" if (isinstance(k, str) and k.lower() in REDACT_KEYS) else _redact(v)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [_redact(v) for v in obj]
    return obj


def command_preview(command: str) -> str:
    if len(command) <= MAX_COMMAND_PREVIEW:
        return command
    return command[:MAX_COMMAND_PREVIEW] + "..."


def audit(event: str, **kwargs: Any) -> None:
    """Log one audit event (command_rejected, command_started, ...)."""
    payload = _redact(dict(kwargs))
    payload["event"] = event
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()
    logger.info("audit: %s", payload, extra={"audit_event": event})
