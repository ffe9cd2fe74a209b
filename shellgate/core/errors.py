"""Error taxonomy for policy checks, directory state and process execution."""

from __future__ import annotations

from typing import Sequence


class GatewayError(Exception):
    """Base class for every error raised by the gateway core."""


class ConfigError(GatewayError):
    """Configuration could not be loaded or is invalid. Fatal at startup."""


class PolicyViolation(GatewayError):
    """A request was rejected by the security policy before anything ran."""

    rule = "policy"


class CommandPolicyError(PolicyViolation):
    rule = "command"


class BlockedOperatorError(CommandPolicyError):
    rule = "blocked_operator"

    def __init__(self, operator: str, shell: str) -> None:
        super().__init__(f"Command contains blocked operator for {shell}: {operator}")
        self.operator = operator


class BlockedCommandError(CommandPolicyError):
    rule = "blocked_command"

    def __init__(self, command: str, shell: str) -> None:
        super().__init__(f'Command is blocked for {shell}: "{command}"')
        self.command = command


class BlockedArgumentError(CommandPolicyError):
    rule = "blocked_argument"

    def __init__(self, argument: str, pattern: str, shell: str) -> None:
        super().__init__(
            f'Argument "{argument}" is blocked for {shell} (matches pattern "{pattern}")'
        )
        self.argument = argument
        self.pattern = pattern


class CommandTooLongError(CommandPolicyError):
    rule = "max_command_length"

    def __init__(self, length: int, limit: int, shell: str) -> None:
        super().__init__(
            f"Command exceeds maximum length of {limit} for {shell} (got {length})"
        )
        self.length = length
        self.limit = limit


class DirectoryPolicyError(PolicyViolation):
    """Directory is outside the allow-list (or cannot be checked against it)."""

    rule = "allowed_paths"

    def __init__(self, message: str, allowed_paths: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.allowed_paths = list(allowed_paths)


class ShellNotAvailableError(GatewayError):
    """Requested shell is unknown or disabled."""


class WorkingDirectoryUnsetError(GatewayError):
    """No explicit directory was given and the active directory is not set."""

    def __init__(self) -> None:
        super().__init__(
            "Server's active working directory is not set. Use the "
            "'set_current_directory' tool to establish a valid working directory "
            "before running commands without an explicit 'workingDir'."
        )


class WorkingDirectoryError(GatewayError):
    """The OS refused to change into the requested directory."""


class ProcessStartError(GatewayError):
    """Shell process could not be spawned."""


class ProcessTimeoutError(GatewayError):
    """Shell process exceeded its timeout and was killed."""

    def __init__(self, shell: str, timeout: float) -> None:
        super().__init__(f"Command execution timed out after {timeout:g} seconds in {shell}")
        self.shell = shell
        self.timeout = timeout


class DirectoryValidationDisabledError(GatewayError):
    """validate_directories was called while directory restriction is off."""

    def __init__(self) -> None:
        super().__init__(
            "Directory validation is disabled because 'restrict_working_directory' "
            "is not enabled in the server configuration."
        )
