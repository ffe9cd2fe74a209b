"""Gateway facade: resolve the policy once, validate requests, dispatch processes."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from shellgate.config.loader import GatewayConfig, ShellKind
from shellgate.core.errors import (
    CommandPolicyError,
    DirectoryPolicyError,
    DirectoryValidationDisabledError,
    PolicyViolation,
    ShellNotAvailableError,
)
from shellgate.core.resolver import ResolvedShellConfig, resolve_all_configs, resolve_shell_config
from shellgate.core.tools import format_result
from shellgate.core.workdir import WorkingDirectory
from shellgate.security.audit import audit, command_preview
from shellgate.security.command_parser import parse_command
from shellgate.security.command_validator import CommandValidator, ValidatedChain
from shellgate.security.context import ValidationContext
from shellgate.security.path_validation import normalize_for_shell, validate_working_directory
from shellgate.security.paths import PathDialect, is_path_allowed, normalize_path
from shellgate.security.sandbox import run_shell
from shellgate.security.wsl import is_mounted_drive_path, wsl_to_windows

logger = logging.getLogger(__name__)

ShellRef = Union[ShellKind, str]


@dataclass(frozen=True)
class PreparedExecution:
    """A fully validated request, ready to spawn."""

    shell: ShellKind
    config: ResolvedShellConfig
    command: str
    working_dir: str
    argv: tuple[str, ...]
    spawn_cwd: Optional[str]
    timeout: int
    chain: ValidatedChain


def build_argv(config: ResolvedShellConfig, command: str) -> list[str]:
    """
    Process argv for a command. WSL gets the parsed executable and arguments
    after its fixed args (and `-d <instance>` when configured); the other
    shells get the command as a single string.
    """
    executable = config.executable
    if config.shell is not ShellKind.WSL:
        return [executable.command, *executable.args, command]
    argv = [executable.command]
    if config.wsl_config is not None and config.wsl_config.instance_name:
        argv += ["-d", config.wsl_config.instance_name]
    parsed = parse_command(command)
    return [*argv, *executable.args, parsed.executable, *parsed.args]


def spawn_directory(context: ValidationContext, working_dir: str) -> Optional[str]:
    """Directory handed to the OS. A Windows host cannot chdir into a Linux path."""
    if context.dialect is PathDialect.UNIX and os.name == "nt":
        if is_mounted_drive_path(working_dir, context.mount_point):
            return wsl_to_windows(working_dir, context.mount_point)
        return None
    return working_dir


class ShellGateway:
    """
    Entry point for every adapter.

    Policy resolution happens once here; the only state that changes
    afterwards is the active working directory.
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        startup_dir: Optional[str] = None,
        chdir: Callable[[str], None] = os.chdir,
    ) -> None:
        self.config = config
        self.resolved_configs: Mapping[ShellKind, ResolvedShellConfig] = resolve_all_configs(
            config.global_policy, config.shells
        )
        self.workdir = WorkingDirectory(config.global_policy, chdir=chdir)
        self.workdir.initialize(startup_dir)

    @property
    def enabled_shells(self) -> list[ShellKind]:
        return list(self.resolved_configs.keys())

    @property
    def startup_messages(self) -> list[str]:
        return list(self.workdir.startup_messages)

    def context_for(self, shell: ShellRef) -> ValidationContext:
        try:
            kind = ShellKind(shell)
        except ValueError:
            raise ShellNotAvailableError(f"Unknown shell: {shell}") from None
        config = self.resolved_configs.get(kind)
        if config is None:
            raise ShellNotAvailableError(f"Shell '{kind.value}' is not configured or enabled")
        return ValidationContext.create(config)

    def _working_dir_for(self, context: ValidationContext, working_dir: Optional[str]) -> str:
        if working_dir:
            normalized = normalize_for_shell(working_dir, context)
            try:
                validate_working_directory(normalized, context)
            except DirectoryPolicyError as e:
                raise DirectoryPolicyError(
                    f"Working directory validation failed: {e}", e.allowed_paths
                ) from e
            return normalized

        current = self.workdir.require()
        try:
            validate_working_directory(current, context)
        except DirectoryPolicyError as e:
            raise DirectoryPolicyError(
                f"Current directory '{current}' is not allowed for shell "
                f"'{context.shell_name}'. {e}",
                e.allowed_paths,
            ) from e
        if context.dialect is PathDialect.UNIX:
            return normalize_for_shell(current, context)
        return current

    def prepare_execution(
        self, shell: ShellRef, command: str, working_dir: Optional[str] = None
    ) -> PreparedExecution:
        """Validate a request completely. Nothing is spawned."""
        context = self.context_for(shell)
        try:
            if not command or not command.strip():
                raise CommandPolicyError("Command must not be empty")
            directory = self._working_dir_for(context, working_dir)
            chain = CommandValidator(context).validate_chain(command, directory)
        except PolicyViolation as e:
            audit(
                "command_rejected",
                shell=context.shell_name,
                rule=e.rule,
                reason=str(e),
                command=command_preview(command or ""),
            )
            raise
        return PreparedExecution(
            shell=context.shell,
            config=context.config,
            command=command,
            working_dir=directory,
            argv=tuple(build_argv(context.config, command)),
            spawn_cwd=spawn_directory(context, directory),
            timeout=context.config.security.command_timeout,
            chain=chain,
        )

    async def execute(
        self, shell: ShellRef, command: str, working_dir: Optional[str] = None
    ) -> dict[str, Any]:
        prepared = self.prepare_execution(shell, command, working_dir)
        shell_name = prepared.shell.value
        audit(
            "command_started",
            shell=shell_name,
            working_dir=prepared.working_dir,
            command=command_preview(command),
        )
        result = await run_shell(
            prepared.argv,
            shell=shell_name,
            cwd=prepared.spawn_cwd,
            timeout_seconds=prepared.timeout,
        )
        audit("command_finished", shell=shell_name, exit_code=result.exit_code)
        return format_result(result, shell_name, prepared.working_dir)

    def get_active_directory(self) -> Optional[str]:
        return self.workdir.get()

    def set_active_directory(self, path: str) -> tuple[Optional[str], str]:
        return self.workdir.set(path)

    def validate_directories(self, directories: list[str], shell: Optional[ShellRef] = None) -> list[str]:
        """Return the entries that are outside the allow-list (empty when all pass)."""
        if not self.config.global_policy.security.restrict_working_directory:
            raise DirectoryValidationDisabledError()
        if shell is not None:
            context = self.context_for(shell)
            invalid = []
            for directory in directories:
                try:
                    validate_working_directory(normalize_for_shell(directory, context), context)
                except DirectoryPolicyError:
                    invalid.append(directory)
            return invalid
        allowed = self.config.global_policy.paths.allowed_paths
        return [d for d in directories if not is_path_allowed(normalize_path(d), allowed)]

    def allowed_paths_for(self, shell: ShellRef) -> list[str]:
        return self.context_for(shell).allowed_paths

    def describe_config(self) -> dict[str, Any]:
        """Serializable view of the configuration. Credentials are never included."""
        policy = self.config.global_policy
        shells: dict[str, Any] = {}
        for kind, definition in self.config.shells.items():
            resolved = self.resolved_configs.get(kind) or resolve_shell_config(policy, kind, definition)
            shells[kind.value] = {
                "enabled": definition.enabled,
                "command": definition.executable.command,
                "args": list(definition.executable.args),
                "blocked_operators": list(resolved.restrictions.blocked_operators),
            }
        configuration = {
            "security": {
                **policy.security.model_dump(),
                "blocked_commands": list(policy.restrictions.blocked_commands),
                "blocked_arguments": list(policy.restrictions.blocked_arguments),
                "allowed_paths": list(policy.paths.allowed_paths),
            },
            "shells": shells,
        }
        return {
            "configuration": configuration,
            "resolved_shells": {kind.value: self._summarize(kind) for kind in self.enabled_shells},
        }

    def _summarize(self, kind: ShellKind) -> dict[str, Any]:
        context = self.context_for(kind)
        resolved = context.config
        summary: dict[str, Any] = {
            "shell": kind.value,
            "executable": resolved.executable.model_dump(),
            "security": resolved.security.model_dump(),
            "restrictions": resolved.restrictions.model_dump(),
            "paths": {
                "allowed_paths": context.allowed_paths,
                "initial_dir": resolved.paths.initial_dir,
            },
        }
        if resolved.wsl_config is not None:
            summary["wsl_config"] = resolved.wsl_config.model_dump()
        return summary
