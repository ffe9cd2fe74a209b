"""The server's single active working directory."""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Optional

from shellgate.config.loader import GlobalPolicy
from shellgate.core.errors import (
    DirectoryPolicyError,
    WorkingDirectoryError,
    WorkingDirectoryUnsetError,
)
from shellgate.security.audit import audit
from shellgate.security.paths import is_path_allowed, normalize_path

logger = logging.getLogger(__name__)


class WorkingDirectory:
    """
    Unset (None) or Set(path). Transitions happen only through
    initialize() and set(); a failed set() leaves the state untouched.
    """

    def __init__(self, policy: GlobalPolicy, chdir: Callable[[str], None] = os.chdir) -> None:
        self._policy = policy
        self._chdir = chdir
        self._lock = threading.Lock()
        self._current: Optional[str] = None
        self.startup_messages: list[str] = []

    @property
    def _restricted(self) -> bool:
        return self._policy.security.restrict_working_directory

    @property
    def _allowed(self) -> list[str]:
        return list(self._policy.paths.allowed_paths)

    def _note(self, level: int, message: str) -> None:
        self.startup_messages.append(message)
        logger.log(level, message)

    def initialize(self, startup_dir: Optional[str] = None) -> Optional[str]:
        """Pick the startup directory. Never falls back to another allowed path."""
        candidate = self._policy.paths.initial_dir or normalize_path(startup_dir or os.getcwd())
        with self._lock:
            self._current = None
            self.startup_messages = []
            if self._restricted and not is_path_allowed(candidate, self._allowed):
                self._note(
                    logging.ERROR,
                    f"Initial directory '{candidate}' is not in allowed paths: "
                    f"{', '.join(self._allowed) or '(none)'}. Active working directory is unset; "
                    "use set_current_directory to choose one.",
                )
                return None
            try:
                self._chdir(candidate)
            except OSError as e:
                self._note(
                    logging.ERROR,
                    f"Failed to set working directory '{candidate}': {e}. "
                    f"Allowed paths: {', '.join(self._allowed) or '(none)'}",
                )
                return None
            self._current = candidate
            self._note(logging.INFO, f"Active working directory set to '{candidate}'")
            return candidate

    def get(self) -> Optional[str]:
        with self._lock:
            return self._current

    def require(self) -> str:
        current = self.get()
        if current is None:
            raise WorkingDirectoryUnsetError()
        return current

    def set(self, raw: str) -> tuple[Optional[str], str]:
        """Change the active directory. Returns (previous, new)."""
        new_dir = normalize_path(raw)
        if not new_dir:
            raise WorkingDirectoryError("Directory path must not be empty")
        if self._restricted and not is_path_allowed(new_dir, self._allowed):
            raise DirectoryPolicyError(
                f"Directory must be within allowed paths: {', '.join(self._allowed)}",
                self._allowed,
            )
        with self._lock:
            try:
                self._chdir(new_dir)
            except OSError as e:
                raise WorkingDirectoryError(f"Cannot change directory to '{new_dir}': {e}") from e
            previous, self._current = self._current, new_dir
        audit("directory_changed", previous=previous, new=new_dir)
        return previous, new_dir
