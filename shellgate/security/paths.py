"""Path classification and normalization across Windows, UNC, POSIX and Git Bash forms.

Everything here is pure string manipulation: nothing touches the filesystem, so
Windows paths normalize the same way on any host.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Sequence

SYSTEM_DRIVE = "C:"

_GIT_BASH_DRIVE = re.compile(r"^/([a-zA-Z])(/.*)?$", re.DOTALL)
_DRIVE_PREFIX = re.compile(r"^([a-zA-Z]):(.*)$", re.DOTALL)
_DRIVE_ROOT = re.compile(r"^[a-zA-Z]:\\$")
_REPEATED_SLASHES = re.compile(r"/{2,}")
_ONE_SEPARATOR = re.compile(r"[\\/]")


class PathDialect(str, Enum):
    WINDOWS = "windows"
    UNIX = "unix"
    MIXED = "mixed"


def is_git_bash_drive_path(raw: str) -> bool:
    """True for `/c` and `/c/...` style drive references."""
    return bool(_GIT_BASH_DRIVE.match(raw.strip()))


def is_unc_path(raw: str) -> bool:
    return raw.startswith("\\\\") or raw.startswith("//")


def is_drive_path(raw: str) -> bool:
    return bool(_DRIVE_PREFIX.match(raw.strip()))


def classify_path(raw: str) -> PathDialect:
    """Dialect a path is written in: Git Bash drive references are mixed."""
    path = (raw or "").strip()
    if _GIT_BASH_DRIVE.match(path):
        return PathDialect.MIXED
    if path.startswith("/"):
        return PathDialect.UNIX
    return PathDialect.WINDOWS


def _resolve_segments(parts: Iterable[str]) -> list[str]:
    resolved: list[str] = []
    for part in parts:
        if not part or part == ".":
            continue
        if part == "..":
            if resolved:
                resolved.pop()
            continue
        resolved.append(part)
    return resolved


def normalize_posix_path(path: str) -> str:
    """Collapse repeated slashes; keep a trailing slash only when the input had one."""
    collapsed = _REPEATED_SLASHES.sub("/", path)
    if collapsed == "/":
        return collapsed
    stripped = collapsed.rstrip("/")
    return stripped + "/" if path.endswith("/") else stripped


def _normalize_windows(path: str, trailing: bool) -> str:
    if path.startswith("\\\\"):
        parts = [p for p in path[2:].split("\\") if p]
        share, rest = parts[:2], _resolve_segments(parts[2:])
        result = "\\\\" + "\\".join(share + rest)
        return result + "\\" if trailing and rest else result

    match = _DRIVE_PREFIX.match(path)
    if match:
        drive, rest = match.group(1).upper() + ":", match.group(2)
    else:
        # "\foo" and "foo" are both rooted at the system drive
        drive, rest = SYSTEM_DRIVE, path
    segments = _resolve_segments(rest.split("\\"))
    result = drive + "\\" + "\\".join(segments)
    return result + "\\" if trailing and segments else result


def normalize_path(raw: str) -> str:
    """
    Canonical form of a path.

    `/c/x` becomes `C:\\x`; other paths starting with `/` stay POSIX with
    repeated slashes collapsed; UNC paths stay UNC; everything else is a
    Windows path resolved against its drive (or the system drive) with an
    upper-case drive letter. A trailing separator survives only when the input
    had one; drive roots always keep theirs.
    """
    if not isinstance(raw, str) or not raw.strip():
        return ""
    path = raw.strip()
    trailing = path.endswith(("/", "\\"))

    git_bash = _GIT_BASH_DRIVE.match(path)
    if git_bash:
        remainder = (git_bash.group(2) or "").replace("/", "\\")
        path = git_bash.group(1).upper() + ":" + remainder
    elif path.startswith("/"):
        return normalize_posix_path(path)
    else:
        path = path.replace("/", "\\")
    return _normalize_windows(path, trailing)


def is_root_path(path: str) -> bool:
    return path == "/" or bool(_DRIVE_ROOT.match(path))


def strip_trailing_separator(path: str) -> str:
    if is_root_path(path):
        return path
    return path.rstrip("\\/")


def _split(normalized: str) -> list[str]:
    lowered = normalized.lower()
    if lowered.startswith("/"):
        # POSIX paths keep ".." after normalization; resolve it for comparison
        return [""] + _resolve_segments(lowered.split("/"))
    return _ONE_SEPARATOR.split(lowered.rstrip("\\/"))


def _segments(raw: str) -> list[str] | None:
    normalized = normalize_path(raw)
    if not normalized:
        return None
    return _split(normalized)


def _contains(parent: Sequence[str], child: Sequence[str]) -> bool:
    return len(child) >= len(parent) and list(child[: len(parent)]) == list(parent)


def is_path_allowed(candidate: str, allowed_paths: Iterable[str]) -> bool:
    """
    True when `candidate` equals an allowed entry or lies underneath one.

    Both sides are normalized and lower-cased, then compared segment by
    segment so that `C:\\allowed` does not admit `C:\\allowed-other`.
    """
    target = _segments(candidate)
    if target is None:
        return False
    for entry in allowed_paths:
        parent = _segments(entry) if isinstance(entry, str) else None
        if parent is not None and _contains(parent, target):
            return True
    return False


def normalize_allowed_paths(paths: Iterable[str]) -> list[str]:
    """Normalize an allow-list, dropping duplicates and entries nested in others."""
    kept: list[tuple[str, list[str]]] = []
    for raw in paths:
        normalized = normalize_path(raw)
        if not normalized:
            continue
        segments = _split(normalized)
        if any(_contains(existing, segments) for _, existing in kept):
            continue
        kept = [(p, existing) for p, existing in kept if not _contains(segments, existing)]
        kept.append((strip_trailing_separator(normalized), segments))
    return [p for p, _ in kept]


def is_windows_absolute(path: str) -> bool:
    """Drive-rooted (`C:\\x`) or UNC."""
    return bool(re.match(r"^[a-zA-Z]:[\\/]", path)) or is_unc_path(path)
