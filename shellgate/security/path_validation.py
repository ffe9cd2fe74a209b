"""Shell-aware path normalization and working directory checks."""

from __future__ import annotations

import posixpath

from shellgate.core.errors import DirectoryPolicyError
from shellgate.security.context import ValidationContext
from shellgate.security.paths import (
    PathDialect,
    is_drive_path,
    is_git_bash_drive_path,
    is_path_allowed,
    is_unc_path,
    is_windows_absolute,
    normalize_path,
    normalize_posix_path,
)
from shellgate.security.wsl import (
    WslPathError,
    validate_wsl_working_directory,
    windows_to_wsl,
    wsl_to_windows,
)


def normalize_for_shell(raw: str, context: ValidationContext) -> str:
    """Canonical form of `raw` in the dialect of the context's shell."""
    path = (raw or "").strip()
    if not path:
        return ""
    dialect = context.dialect
    if dialect is PathDialect.WINDOWS:
        return normalize_path(wsl_to_windows(path, context.mount_point))
    if dialect is PathDialect.UNIX:
        if is_drive_path(path) or is_unc_path(path):
            try:
                return windows_to_wsl(normalize_path(path), context.mount_point)
            except WslPathError as e:
                raise DirectoryPolicyError(str(e), context.allowed_paths) from e
        path = path.replace("\\", "/")
        return normalize_posix_path(path) if path.startswith("/") else path
    # Git Bash accepts both forms
    if path.startswith("/") and not is_git_bash_drive_path(path):
        return normalize_posix_path(path)
    if is_drive_path(path) or "\\" in path or is_git_bash_drive_path(path):
        return normalize_path(path)
    return path.replace("\\", "/")


def is_absolute_for_shell(raw: str, context: ValidationContext) -> bool:
    path = (raw or "").strip()
    if context.dialect is PathDialect.WINDOWS:
        # "\foo" is relative to the current drive, see resolve_cd_target
        return is_drive_path(path) or is_unc_path(path) or path.startswith("/")
    return path.startswith("/") or is_drive_path(path) or is_unc_path(path)


def resolve_cd_target(current: str, target: str, context: ValidationContext) -> str:
    """Directory a `cd target` run from `current` ends up in."""
    target = target.strip()
    if is_absolute_for_shell(target, context):
        return normalize_for_shell(target, context)
    if is_windows_absolute(current):
        if target.startswith("\\"):
            drive = current[:2] if is_drive_path(current) else ""
            return normalize_path(drive + target)
        return normalize_path(current.rstrip("\\") + "\\" + target.replace("/", "\\"))
    joined = posixpath.normpath(posixpath.join(current or "/", target.replace("\\", "/")))
    return normalize_for_shell(joined, context)


def _require_allowed(directory: str, allowed_paths: list[str]) -> None:
    if not is_path_allowed(directory, allowed_paths):
        raise DirectoryPolicyError(
            f"Working directory '{directory}' must be within allowed paths: "
            f"{', '.join(allowed_paths)}",
            allowed_paths,
        )


def validate_working_directory(directory: str, context: ValidationContext) -> None:
    """
    Raise DirectoryPolicyError unless `directory` is inside the shell's allow-list.

    A no-op when the shell does not restrict working directories.
    """
    if not context.config.security.restrict_working_directory:
        return
    allowed_paths = context.allowed_paths
    if not allowed_paths:
        raise DirectoryPolicyError(f"No allowed paths configured for {context.shell_name}")

    normalized = normalize_for_shell(directory, context)
    dialect = context.dialect
    if dialect is PathDialect.UNIX:
        validate_wsl_working_directory(normalized, allowed_paths, context.mount_point)
        return
    if dialect is PathDialect.WINDOWS:
        if not is_windows_absolute(normalized):
            raise DirectoryPolicyError("Working directory must be an absolute path", allowed_paths)
        _require_allowed(normalized, allowed_paths)
        return
    if not (is_windows_absolute(normalized) or normalized.startswith("/")):
        raise DirectoryPolicyError("Working directory must be an absolute path", allowed_paths)
    # normalize_path maps /c/x entries onto C:\x, so both forms compare directly
    _require_allowed(normalized, allowed_paths)
