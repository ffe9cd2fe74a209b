"""Validation context: a shell, its resolved config and its path dialect."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from shellgate.config.loader import ShellKind
from shellgate.security.paths import PathDialect
from shellgate.security.wsl import DEFAULT_MOUNT_POINT, resolve_wsl_allowed_paths

if TYPE_CHECKING:
    from shellgate.core.resolver import ResolvedShellConfig

SHELL_DIALECTS: dict[ShellKind, PathDialect] = {
    ShellKind.CMD: PathDialect.WINDOWS,
    ShellKind.POWERSHELL: PathDialect.WINDOWS,
    ShellKind.GITBASH: PathDialect.MIXED,
    ShellKind.WSL: PathDialect.UNIX,
}


@dataclass(frozen=True)
class ValidationContext:
    shell: ShellKind
    config: ResolvedShellConfig

    @classmethod
    def create(cls, config: ResolvedShellConfig) -> "ValidationContext":
        return cls(shell=config.shell, config=config)

    @property
    def shell_name(self) -> str:
        return self.shell.value

    @property
    def dialect(self) -> PathDialect:
        return SHELL_DIALECTS[self.shell]

    @property
    def mount_point(self) -> str:
        if self.config.wsl_config is not None:
            return self.config.wsl_config.mount_point
        return DEFAULT_MOUNT_POINT

    @property
    def allowed_paths(self) -> list[str]:
        """Effective allow-list. Recomputed on each call for WSL."""
        if self.shell is not ShellKind.WSL:
            return list(self.config.paths.allowed_paths)
        wsl = self.config.wsl_config
        shell_paths = list(self.config.paths.allowed_paths)
        if shell_paths == list(self.config.global_allowed_paths):
            # not overridden: global entries arrive below, converted to mount paths
            shell_paths = []
        return resolve_wsl_allowed_paths(
            self.config.global_allowed_paths,
            shell_paths,
            mount_point=self.mount_point,
            inherit_global_paths=wsl.inherit_global_paths if wsl else True,
        )
