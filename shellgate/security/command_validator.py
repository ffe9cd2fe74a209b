"""Reject commands that break the shell's restrictions before anything is spawned."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from shellgate.core.errors import (
    BlockedArgumentError,
    BlockedCommandError,
    BlockedOperatorError,
    CommandTooLongError,
    DirectoryPolicyError,
)
from shellgate.security.command_parser import (
    ParsedCommand,
    extract_command_name,
    parse_command,
    split_chain,
)
from shellgate.security.context import ValidationContext
from shellgate.security.path_validation import (
    normalize_for_shell,
    resolve_cd_target,
    validate_working_directory,
)
from shellgate.security.paths import PathDialect

logger = logging.getLogger(__name__)

CHANGE_DIRECTORY_COMMANDS = frozenset({"cd", "chdir"})
_GLUED_CD = re.compile(r"^(cd|chdir)(\.\..*|\\.*|/.*)$", re.IGNORECASE)
# cd targets the shell expands itself; their destination cannot be checked here
_UNRESOLVABLE_TARGET_MARKERS = ("$", "%")


@dataclass(frozen=True)
class ValidatedChain:
    steps: tuple[ParsedCommand, ...]
    final_directory: str


class CommandValidator:
    """Policy checks for one shell. Stateless apart from the context."""

    def __init__(self, context: ValidationContext) -> None:
        self.context = context
        self._blocked = [b.strip().lower() for b in context.config.restrictions.blocked_commands if b.strip()]

    @property
    def _shell(self) -> str:
        return self.context.shell_name

    def check_operators(self, command: str) -> None:
        if not self.context.config.security.enable_injection_protection:
            return
        for operator in self.context.config.restrictions.blocked_operators:
            if operator and operator in command:
                raise BlockedOperatorError(operator, self._shell)

    def is_command_blocked(self, parsed: ParsedCommand) -> bool:
        name = parsed.name
        if not name:
            return False
        words = " ".join([name, *parsed.args]).lower().split()
        for blocked in self._blocked:
            if " " in blocked:
                # multi-word entries such as "rm -rf" match on the leading words
                blocked_words = blocked.split()
                if words[: len(blocked_words)] == blocked_words:
                    return True
            elif name == blocked or name == extract_command_name(blocked):
                return True
        return False

    def check_command(self, parsed: ParsedCommand) -> None:
        if self.is_command_blocked(parsed):
            raise BlockedCommandError(parsed.name, self._shell)

    def check_arguments(self, args: list[str]) -> None:
        for arg in args:
            for pattern in self.context.config.blocked_argument_patterns:
                if pattern.fullmatch(arg):
                    raise BlockedArgumentError(arg, pattern.pattern, self._shell)

    def check_length(self, command: str) -> None:
        limit = self.context.config.security.max_command_length
        if len(command) > limit:
            raise CommandTooLongError(len(command), limit, self._shell)

    def validate_single(self, command: str) -> ParsedCommand:
        """Validate one `&&`-free segment and return it parsed."""
        self.check_operators(command)
        parsed = parse_command(command)
        self.check_command(parsed)
        self.check_arguments(parsed.args)
        self.check_length(command)
        return parsed

    def cd_target(self, parsed: ParsedCommand) -> str | None:
        args = parsed.args
        glued = _GLUED_CD.match(parsed.executable)
        if glued and self.context.dialect is PathDialect.WINDOWS:
            # cmd and PowerShell accept "cd..", "cd\" and "cd/d" as one token
            args = [glued.group(2), *args]
        elif parsed.executable.lower() not in CHANGE_DIRECTORY_COMMANDS:
            return None
        if not args:
            return None
        # cmd: "cd /d D:\work"
        if self.context.dialect is PathDialect.WINDOWS and args[0].lower() == "/d" and len(args) > 1:
            return args[1]
        return args[0]

    def _check_resolvable(self, target: str) -> None:
        if not self.context.config.security.restrict_working_directory:
            return
        if target == "-" or target.startswith("~") or any(m in target for m in _UNRESOLVABLE_TARGET_MARKERS):
            raise DirectoryPolicyError(
                f"Cannot verify directory change to '{target}' for {self._shell}",
                self.context.allowed_paths,
            )

    def validate_chain(self, command: str, working_dir: str) -> ValidatedChain:
        """
        Validate every `&&` segment, tracking `cd`/`chdir` so later segments
        are checked against the directory they will actually run in.
        """
        self.check_length(command)
        current = normalize_for_shell(working_dir, self.context)
        steps: list[ParsedCommand] = []
        for segment in split_chain(command):
            parsed = self.validate_single(segment)
            steps.append(parsed)
            target = self.cd_target(parsed)
            if target is None:
                continue
            self._check_resolvable(target)
            current = resolve_cd_target(current, target, self.context)
            validate_working_directory(current, self.context)
            logger.debug("chain changes directory to %s", current)
        return ValidatedChain(steps=tuple(steps), final_directory=current)
