"""Tests for the WSL path bridge."""

import pytest

from shellgate.core.errors import DirectoryPolicyError
from shellgate.security.paths import normalize_path
from shellgate.security.wsl import (
    WslPathError,
    is_mounted_drive_path,
    is_wsl_path_allowed,
    resolve_wsl_allowed_paths,
    validate_wsl_working_directory,
    windows_to_wsl,
    wsl_to_windows,
)


def test_windows_to_wsl():
    assert windows_to_wsl("C:\\Users\\a") == "/mnt/c/Users/a"
    assert windows_to_wsl("C:\\") == "/mnt/c"
    assert windows_to_wsl("D:/data/") == "/mnt/d/data"
    assert windows_to_wsl("E:\\x", "/wsl") == "/wsl/e/x"


def test_windows_to_wsl_passes_posix_through():
    assert windows_to_wsl("/home/u") == "/home/u"


def test_windows_to_wsl_rejects_unc():
    with pytest.raises(WslPathError):
        windows_to_wsl("\\\\server\\share\\x")


def test_wsl_to_windows():
    assert wsl_to_windows("/mnt/c/Users/a") == "C:\\Users\\a"
    assert wsl_to_windows("/mnt/c") == "C:\\"
    assert wsl_to_windows("/home/u") == "/home/u"
    assert wsl_to_windows("/mnt/cdrom/x") == "/mnt/cdrom/x"


def test_round_trip():
    wsl = windows_to_wsl("C:\\Users\\a", "/mnt/")
    assert wsl == "/mnt/c/Users/a"
    assert normalize_path(wsl_to_windows(wsl)) == normalize_path("C:\\Users\\a")


def test_is_mounted_drive_path():
    assert is_mounted_drive_path("/mnt/d/x")
    assert not is_mounted_drive_path("/home/u")


def test_resolve_allowed_paths_shell_first_then_global():
    out = resolve_wsl_allowed_paths(["C:\\work", "/home/u"], ["/home/u", "/opt"])
    assert out == ["/home/u", "/opt", "/mnt/c/work"]


def test_resolve_allowed_paths_skips_unc(caplog):
    out = resolve_wsl_allowed_paths(["\\\\srv\\share", "D:\\data"], [])
    assert out == ["/mnt/d/data"]
    assert "Skipping" in caplog.text


def test_resolve_allowed_paths_without_inheritance():
    out = resolve_wsl_allowed_paths(["C:\\work"], ["/home/u"], inherit_global_paths=False)
    assert out == ["/home/u"]


def test_is_wsl_path_allowed():
    allowed = ["/mnt/c/work", "/home/u/"]
    assert is_wsl_path_allowed("/mnt/c/work", allowed)
    assert is_wsl_path_allowed("/mnt/c/work/sub/", allowed)
    assert is_wsl_path_allowed("/home/u/x", allowed)
    assert not is_wsl_path_allowed("/mnt/c/work/../secret", allowed)
    assert not is_wsl_path_allowed("/mnt/c/workshop", allowed)
    assert not is_wsl_path_allowed("", allowed)


def test_is_wsl_path_allowed_cross_checks_windows_entries():
    assert is_wsl_path_allowed("/mnt/c/work/sub", ["C:\\work"])
    assert not is_wsl_path_allowed("/mnt/d/work", ["C:\\work"])


def test_validate_wsl_working_directory():
    validate_wsl_working_directory("/mnt/c/tad/sub", ["/mnt/c/tad"])
    with pytest.raises(DirectoryPolicyError, match="absolute"):
        validate_wsl_working_directory("tad", ["/mnt/c/tad"])
    with pytest.raises(DirectoryPolicyError, match="No allowed paths"):
        validate_wsl_working_directory("/mnt/c/tad", [])
    with pytest.raises(DirectoryPolicyError) as exc:
        validate_wsl_working_directory("/mnt/d/forbidden", ["/mnt/c/tad"])
    assert "/mnt/c/tad" in str(exc.value)
    assert exc.value.allowed_paths == ["/mnt/c/tad"]
