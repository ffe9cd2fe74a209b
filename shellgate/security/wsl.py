"""Conversion between Windows drive paths and WSL mount paths, and WSL allow-lists."""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Iterable, Sequence

from shellgate.core.errors import DirectoryPolicyError
from shellgate.security.paths import is_path_allowed, is_unc_path

logger = logging.getLogger(__name__)

DEFAULT_MOUNT_POINT = "/mnt/"

_WINDOWS_DRIVE = re.compile(r"^([a-zA-Z]):([\\/]?.*)$", re.DOTALL)
_WINDOWS_STYLE = re.compile(r"^[a-zA-Z]:|\\")


class WslPathError(ValueError):
    """Path cannot be represented inside WSL."""


def _mount_base(mount_point: str) -> str:
    return mount_point if mount_point.endswith("/") else mount_point + "/"


def windows_to_wsl(windows_path: str, mount_point: str = DEFAULT_MOUNT_POINT) -> str:
    """`C:\\Users\\a` -> `/mnt/c/Users/a`. UNC paths raise, other paths pass through."""
    if is_unc_path(windows_path):
        raise WslPathError("UNC paths are not supported for WSL conversion.")
    match = _WINDOWS_DRIVE.match(windows_path)
    if not match:
        return windows_path
    drive = match.group(1).lower()
    rest = match.group(2).replace("\\", "/").strip("/")
    base = _mount_base(mount_point)
    if not rest:
        return f"{base}{drive}"
    return f"{base}{drive}/{rest}"


def wsl_to_windows(wsl_path: str, mount_point: str = DEFAULT_MOUNT_POINT) -> str:
    """`/mnt/c/Users/a` -> `C:\\Users\\a`. Paths outside the mount point pass through."""
    base = _mount_base(mount_point)
    pattern = re.compile("^" + re.escape(base) + r"([a-zA-Z])(?:/(.*))?$", re.DOTALL)
    match = pattern.match(wsl_path)
    if not match:
        return wsl_path
    rest = (match.group(2) or "").strip("/").replace("/", "\\")
    return f"{match.group(1).upper()}:\\{rest}"


def is_mounted_drive_path(path: str, mount_point: str = DEFAULT_MOUNT_POINT) -> bool:
    return wsl_to_windows(path, mount_point) != path


def resolve_wsl_allowed_paths(
    global_allowed_paths: Iterable[str],
    shell_allowed_paths: Iterable[str] = (),
    *,
    mount_point: str = DEFAULT_MOUNT_POINT,
    inherit_global_paths: bool = True,
) -> list[str]:
    """Shell entries first, then global entries converted to mount paths (unless disabled)."""
    resolved: list[str] = []
    for path in shell_allowed_paths:
        if path and path not in resolved:
            resolved.append(path)
    if not inherit_global_paths:
        return resolved
    for global_path in global_allowed_paths:
        try:
            converted = windows_to_wsl(global_path, mount_point)
        except WslPathError as e:
            logger.warning("Skipping global path %r for WSL: %s", global_path, e)
            continue
        if converted and converted not in resolved:
            resolved.append(converted)
    return resolved


def _posix_comparable(path: str) -> str:
    normalized = posixpath.normpath(path)
    # normpath keeps a leading "//" per POSIX; treat it as "/"
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    if normalized != "/" and normalized.endswith("/"):
        normalized = normalized.rstrip("/")
    return normalized


def is_wsl_path_allowed(
    candidate: str, allowed_paths: Sequence[str], mount_point: str = DEFAULT_MOUNT_POINT
) -> bool:
    """
    POSIX containment check for WSL directories.

    A candidate on a mounted drive is also converted back to its Windows form
    and checked against Windows-style entries, so `C:\\work` in the allow-list
    admits `/mnt/c/work/sub`.
    """
    if not candidate or not isinstance(candidate, str):
        return False
    target = _posix_comparable(candidate)
    for allowed in allowed_paths:
        if not allowed or not isinstance(allowed, str) or _WINDOWS_STYLE.search(allowed):
            continue
        parent = _posix_comparable(allowed)
        if target == parent:
            return True
        if target.startswith(parent if parent == "/" else parent + "/"):
            return True
    if is_mounted_drive_path(target, mount_point):
        windows_entries = [p for p in allowed_paths if p and _WINDOWS_STYLE.search(p)]
        if windows_entries and is_path_allowed(wsl_to_windows(target, mount_point), windows_entries):
            return True
    return False


def validate_wsl_working_directory(
    directory: str, allowed_paths: Sequence[str], mount_point: str = DEFAULT_MOUNT_POINT
) -> None:
    if not posixpath.isabs(directory):
        raise DirectoryPolicyError(
            "WSL working directory must be an absolute path (e.g., /mnt/c/Users or /home/user)",
            allowed_paths,
        )
    if not allowed_paths:
        raise DirectoryPolicyError(
            "No allowed paths configured for WSL shell. Cannot set working directory."
        )
    if not is_wsl_path_allowed(directory, allowed_paths, mount_point):
        raise DirectoryPolicyError(
            f"WSL working directory '{directory}' must be within allowed paths: "
            f"{', '.join(allowed_paths)}",
            allowed_paths,
        )
