"""Tests for shell-aware normalization and working directory checks."""

import pytest

from shellgate.config.loader import ShellKind
from shellgate.core.errors import DirectoryPolicyError
from shellgate.security.path_validation import (
    is_absolute_for_shell,
    normalize_for_shell,
    resolve_cd_target,
    validate_working_directory,
)
from shellgate.security.paths import PathDialect
from shellgate.tests.factories import make_context, make_policy


def test_dialects():
    assert make_context(ShellKind.CMD).dialect is PathDialect.WINDOWS
    assert make_context(ShellKind.POWERSHELL).dialect is PathDialect.WINDOWS
    assert make_context(ShellKind.GITBASH).dialect is PathDialect.MIXED
    assert make_context(ShellKind.WSL).dialect is PathDialect.UNIX


def test_normalize_for_windows_shell():
    ctx = make_context(ShellKind.CMD)
    assert normalize_for_shell("c:/work/x", ctx) == "C:\\work\\x"
    assert normalize_for_shell("/mnt/d/data", ctx) == "D:\\data"
    assert normalize_for_shell("/c/work", ctx) == "C:\\work"
    assert normalize_for_shell("  ", ctx) == ""


def test_normalize_for_wsl_shell():
    ctx = make_context(ShellKind.WSL)
    assert normalize_for_shell("C:\\Users\\a", ctx) == "/mnt/c/Users/a"
    assert normalize_for_shell("/home//u/", ctx) == "/home/u/"
    assert normalize_for_shell("rel\\dir", ctx) == "rel/dir"
    with pytest.raises(DirectoryPolicyError):
        normalize_for_shell("\\\\srv\\share", ctx)


def test_normalize_for_gitbash_shell():
    ctx = make_context(ShellKind.GITBASH)
    assert normalize_for_shell("/c/work", ctx) == "C:\\work"
    assert normalize_for_shell("C:/work", ctx) == "C:\\work"
    assert normalize_for_shell("/usr//bin", ctx) == "/usr/bin"
    assert normalize_for_shell("src/app", ctx) == "src/app"


def test_is_absolute_for_shell():
    cmd = make_context(ShellKind.CMD)
    assert is_absolute_for_shell("C:\\x", cmd)
    assert is_absolute_for_shell("\\\\srv\\share", cmd)
    assert not is_absolute_for_shell("\\x", cmd)
    assert not is_absolute_for_shell("x", cmd)
    wsl = make_context(ShellKind.WSL)
    assert is_absolute_for_shell("/home", wsl)
    assert not is_absolute_for_shell("home", wsl)


def test_resolve_cd_target_windows():
    ctx = make_context(ShellKind.CMD)
    assert resolve_cd_target("C:\\work", "sub\\x", ctx) == "C:\\work\\sub\\x"
    assert resolve_cd_target("C:\\work\\a", "..", ctx) == "C:\\work"
    assert resolve_cd_target("D:\\work", "\\tmp", ctx) == "D:\\tmp"
    assert resolve_cd_target("C:\\work", "E:\\x", ctx) == "E:\\x"
    assert resolve_cd_target("C:\\", "x", ctx) == "C:\\x"


def test_resolve_cd_target_posix():
    ctx = make_context(ShellKind.WSL)
    assert resolve_cd_target("/home/u", "proj", ctx) == "/home/u/proj"
    assert resolve_cd_target("/home/u", "../v", ctx) == "/home/v"
    assert resolve_cd_target("/home/u", "/opt", ctx) == "/opt"


def test_validate_noop_when_unrestricted():
    ctx = make_context(ShellKind.CMD, make_policy(allowed=[], restrict=False))
    validate_working_directory("Z:\\anything", ctx)


def test_validate_requires_allowed_paths():
    ctx = make_context(ShellKind.CMD, make_policy(allowed=[]))
    with pytest.raises(DirectoryPolicyError, match="No allowed paths configured for cmd"):
        validate_working_directory("C:\\x", ctx)


def test_validate_windows_dialect():
    ctx = make_context(ShellKind.POWERSHELL, make_policy(allowed=["C:\\work"]))
    validate_working_directory("c:\\work\\sub", ctx)
    # relative input is rooted at the system drive; POSIX input is not absolute here
    validate_working_directory("work", ctx)
    with pytest.raises(DirectoryPolicyError, match="absolute"):
        validate_working_directory("/srv/x", ctx)
    with pytest.raises(DirectoryPolicyError, match="C:\\\\work"):
        validate_working_directory("C:\\other", ctx)


def test_validate_mixed_dialect_accepts_both_forms():
    ctx = make_context(ShellKind.GITBASH, make_policy(allowed=["C:\\work", "/srv"]))
    validate_working_directory("/c/work/app", ctx)
    validate_working_directory("C:\\work", ctx)
    validate_working_directory("/srv/data", ctx)
    with pytest.raises(DirectoryPolicyError):
        validate_working_directory("/d/work", ctx)
    with pytest.raises(DirectoryPolicyError, match="absolute"):
        validate_working_directory("relative", ctx)


def test_validate_wsl_uses_inherited_global_paths():
    ctx = make_context(ShellKind.WSL, make_policy(allowed=["C:\\work"]))
    assert ctx.allowed_paths == ["/mnt/c/work"]
    validate_working_directory("/mnt/c/work/sub", ctx)
    validate_working_directory("C:\\work\\sub", ctx)
    with pytest.raises(DirectoryPolicyError):
        validate_working_directory("/home/u", ctx)


def test_wsl_shell_paths_with_inheritance_disabled():
    ctx = make_context(
        ShellKind.WSL,
        make_policy(allowed=["C:\\work"]),
        overrides={"paths": {"allowed_paths": ["/home/u"]}},
        wsl_config={"inherit_global_paths": False},
    )
    assert ctx.allowed_paths == ["/home/u"]
    with pytest.raises(DirectoryPolicyError):
        validate_working_directory("/mnt/c/work", ctx)
