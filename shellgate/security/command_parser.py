"""Split a command string into executable and arguments."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field

_EXECUTABLE_SUFFIX = re.compile(r"\.(exe|cmd|bat)$", re.IGNORECASE)
# `&&` or a line break: both start a new command in every supported shell
CHAIN_OPERATOR = re.compile(r"\s*(?:&&|[\r\n]+)\s*")


@dataclass(frozen=True)
class ParsedCommand:
    executable: str
    args: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return extract_command_name(self.executable)


def extract_command_name(command: str) -> str:
    """`C:\\Windows\\System32\\CMD.EXE` -> `cmd`."""
    basename = posixpath.basename(command.replace("\\", "/"))
    return _EXECUTABLE_SUFFIX.sub("", basename).lower()


def tokenize(command: str) -> list[str]:
    """Whitespace split that keeps single- or double-quoted text together."""
    tokens: list[str] = []
    current = ""
    quote = ""
    for char in command:
        if char in ("'", '"') and (not quote or char == quote):
            if quote:
                tokens.append(current)
                current = ""
                quote = ""
            else:
                quote = char
            continue
        if char.isspace() and not quote:
            if current:
                tokens.append(current)
                current = ""
            continue
        current += char
    if current:
        tokens.append(current)
    return tokens


def parse_command(full_command: str) -> ParsedCommand:
    """
    Parse into executable + args.

    An unquoted Windows executable path containing spaces
    (`C:\\Program Files\\App\\app.exe --flag`) is re-joined token by token until
    it ends in .exe/.cmd/.bat; otherwise the first token is the executable.
    """
    full_command = full_command.strip()
    if not full_command:
        return ParsedCommand("")
    tokens = tokenize(full_command)
    if not tokens:
        return ParsedCommand("")

    first = tokens[0]
    if " " not in first and "\\" not in first:
        return ParsedCommand(first, tokens[1:])

    collected: list[str] = []
    for i, token in enumerate(tokens):
        collected.append(token)
        candidate = " ".join(collected)
        if _EXECUTABLE_SUFFIX.search(candidate) or ("\\" not in candidate and len(collected) == 1):
            return ParsedCommand(candidate, tokens[i + 1 :])
        if "\\" in candidate:
            continue
        return ParsedCommand(first, tokens[1:])
    # never found an executable suffix: fall back to the first token
    return ParsedCommand(first, tokens[1:])


def split_chain(command: str) -> list[str]:
    """Split on `&&` and line breaks, dropping empty segments."""
    return [step.strip() for step in CHAIN_OPERATOR.split(command) if step.strip()]
