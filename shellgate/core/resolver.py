"""Merge the global policy with per-shell overrides into one resolved config per shell."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from shellgate.config.loader import (
    ExecutableConfig,
    GlobalPolicy,
    PathsOverrides,
    PathsPolicy,
    RestrictionsOverrides,
    RestrictionsPolicy,
    SecurityOverrides,
    SecurityPolicy,
    ShellDefinition,
    ShellKind,
    ShellsConfig,
    WslMountConfig,
)
from shellgate.security.paths import normalize_allowed_paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedShellConfig:
    """Final policy for one enabled shell. Built once at startup."""

    shell: ShellKind
    executable: ExecutableConfig
    security: SecurityPolicy
    restrictions: RestrictionsPolicy
    paths: PathsPolicy
    global_allowed_paths: tuple[str, ...] = ()
    wsl_config: Optional[WslMountConfig] = None
    blocked_argument_patterns: tuple[re.Pattern[str], ...] = ()


def compile_blocked_arguments(patterns: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            logger.warning("blocked argument %r is not a valid regex (%s); matching it literally", pattern, e)
            compiled.append(re.compile(re.escape(pattern), re.IGNORECASE))
    return tuple(compiled)


def merge_security(base: SecurityPolicy, overrides: Optional[SecurityOverrides]) -> SecurityPolicy:
    if overrides is None:
        return base
    update = overrides.model_dump(exclude_none=True)
    return base.model_copy(update=update) if update else base


def merge_restrictions(
    base: RestrictionsPolicy, overrides: Optional[RestrictionsOverrides]
) -> RestrictionsPolicy:
    """Commands and arguments are appended; operators are replaced (they are shell syntax)."""
    if overrides is None:
        return base
    update: dict[str, list[str]] = {}
    if overrides.blocked_commands is not None:
        update["blocked_commands"] = [*base.blocked_commands, *overrides.blocked_commands]
    if overrides.blocked_arguments is not None:
        update["blocked_arguments"] = [*base.blocked_arguments, *overrides.blocked_arguments]
    if overrides.blocked_operators is not None:
        update["blocked_operators"] = list(overrides.blocked_operators)
    return base.model_copy(update=update) if update else base


def merge_paths(base: PathsPolicy, overrides: Optional[PathsOverrides], shell: ShellKind) -> PathsPolicy:
    """A shell allow-list replaces the global one. WSL entries stay POSIX as written."""
    if overrides is None:
        return base
    update: dict[str, object] = {}
    if overrides.allowed_paths is not None:
        if shell is ShellKind.WSL:
            update["allowed_paths"] = list(overrides.allowed_paths)
        else:
            update["allowed_paths"] = normalize_allowed_paths(overrides.allowed_paths)
    if overrides.initial_dir is not None:
        update["initial_dir"] = overrides.initial_dir
    return base.model_copy(update=update) if update else base


def resolve_shell_config(
    global_policy: GlobalPolicy, shell: ShellKind, definition: ShellDefinition
) -> ResolvedShellConfig:
    overrides = definition.overrides
    restrictions = merge_restrictions(
        global_policy.restrictions, overrides.restrictions if overrides else None
    )
    wsl_config = None
    if shell is ShellKind.WSL:
        wsl_config = definition.wsl_config or WslMountConfig()
    return ResolvedShellConfig(
        shell=shell,
        executable=definition.executable,
        security=merge_security(global_policy.security, overrides.security if overrides else None),
        restrictions=restrictions,
        paths=merge_paths(global_policy.paths, overrides.paths if overrides else None, shell),
        global_allowed_paths=tuple(global_policy.paths.allowed_paths),
        wsl_config=wsl_config,
        blocked_argument_patterns=compile_blocked_arguments(restrictions.blocked_arguments),
    )


def resolve_all_configs(
    global_policy: GlobalPolicy, shells: ShellsConfig
) -> Mapping[ShellKind, ResolvedShellConfig]:
    """Resolved config for every enabled shell. Disabled shells get no entry."""
    resolved: dict[ShellKind, ResolvedShellConfig] = {}
    for kind, definition in shells.items():
        if not definition.enabled:
            logger.info("shell %s is disabled", kind.value)
            continue
        resolved[kind] = resolve_shell_config(global_policy, kind, definition)
        logger.debug("resolved config for shell %s", kind.value)
    return MappingProxyType(resolved)
