"""Tool catalog exposed to protocol clients, plus result formatting."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from shellgate.config.loader import ShellKind
from shellgate.core.resolver import ResolvedShellConfig
from shellgate.security.context import SHELL_DIALECTS
from shellgate.security.paths import PathDialect
from shellgate.security.sandbox import ExecutionResult

_DIALECT_LABELS = {
    PathDialect.WINDOWS: "Windows paths",
    PathDialect.UNIX: "Unix paths",
    PathDialect.MIXED: "Mixed paths",
}

_EXAMPLES: dict[ShellKind, tuple[str, str, str]] = {
    ShellKind.POWERSHELL: ("PowerShell", "Get-Process | Select-Object -First 5", "C:\\\\Users\\\\username"),
    ShellKind.CMD: ("CMD", "dir /b", "C:\\\\Projects"),
    ShellKind.GITBASH: ("Git Bash", "ls -la", "/c/Users/username"),
    ShellKind.WSL: ("WSL", "ls -la", "/home/username"),
}


def build_tool_description(enabled_shells: Sequence[ShellKind]) -> str:
    names = ", ".join(s.value for s in enabled_shells)
    lines = [
        f"Execute a command in the specified shell ({names})",
        "",
        "**IMPORTANT GUIDELINES:**",
        "1. ALWAYS use the `workingDir` parameter to specify the working directory",
        "2. Request config of this server using the get_config tool",
        "3. Follow limitations taken from configuration",
        "4. Use validate_directories tool to validate directories before execution",
        "",
        "**Best Practices:**",
        "- Specify the full, absolute path in the `workingDir` parameter",
        "- Use the shell's full command for complex operations instead of chaining",
        "- Ensure you have proper permissions for the specified working directory",
        "",
    ]
    for kind in (ShellKind.POWERSHELL, ShellKind.CMD, ShellKind.GITBASH, ShellKind.WSL):
        if kind not in enabled_shells:
            continue
        label, command, working_dir = _EXAMPLES[kind]
        lines += [
            f"Example usage ({label}):",
            "```json",
            "{",
            f'  "shell": "{kind.value}",',
            f'  "command": "{command}",',
            f'  "workingDir": "{working_dir}"',
            "}",
            "```",
            "",
        ]
    return "\n".join(lines)


def build_execute_command_schema(
    enabled_shells: Sequence[ShellKind], resolved: Mapping[ShellKind, ResolvedShellConfig]
) -> dict[str, Any]:
    if not enabled_shells:
        raise ValueError("No shells enabled")
    shell_descriptions = {}
    for kind in enabled_shells:
        config = resolved.get(kind)
        if config is None:
            continue
        shell_descriptions[kind.value] = " - ".join(
            [
                f"{kind.value} shell",
                f"timeout: {config.security.command_timeout}s",
                _DIALECT_LABELS[SHELL_DIALECTS[kind]],
            ]
        )
    return {
        "type": "object",
        "properties": {
            "shell": {
                "type": "string",
                "enum": [s.value for s in enabled_shells],
                "description": "Shell to use for command execution",
                "enumDescriptions": shell_descriptions,
            },
            "command": {
                "type": "string",
                "description": "Command to execute. Note: Different shells have different blocked commands and operators.",
            },
            "workingDir": {
                "type": "string",
                "description": (
                    "Working directory (optional). Format depends on shell type:\n"
                    "- Windows shells (cmd, powershell): Use C:\\Path\\Format\n"
                    "- WSL: Use /unix/path/format\n"
                    "- Git Bash: Both formats accepted"
                ),
            },
        },
        "required": ["shell", "command"],
        "additionalProperties": False,
    }


def build_validate_directories_schema(enabled_shells: Sequence[ShellKind]) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "directories": {
                "type": "array",
                "items": {"type": "string"},
                "description": "List of directory paths to validate",
                "minItems": 1,
            }
        },
        "required": ["directories"],
        "additionalProperties": False,
    }
    if enabled_shells:
        schema["properties"]["shell"] = {
            "type": "string",
            "enum": [s.value for s in enabled_shells],
            "description": "Optional: validate against a specific shell's allowed paths instead of global paths",
        }
    return schema


def build_tools_spec(
    enabled_shells: Sequence[ShellKind], resolved: Mapping[ShellKind, ResolvedShellConfig]
) -> list[dict[str, Any]]:
    """tools/list payload. execute_command is omitted when no shell is enabled."""
    tools: list[dict[str, Any]] = []
    if enabled_shells:
        tools.append(
            {
                "name": "execute_command",
                "description": build_tool_description(enabled_shells),
                "inputSchema": build_execute_command_schema(enabled_shells, resolved),
            }
        )
    tools += [
        {
            "name": "get_current_directory",
            "description": "Get the current working directory",
            "inputSchema": {"type": "object", "properties": {}},
        },
        {
            "name": "set_current_directory",
            "description": "Set the current working directory",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Path to set as current working directory"}
                },
                "required": ["path"],
            },
        },
        {
            "name": "get_config",
            "description": "Get the gateway configuration",
            "inputSchema": {"type": "object", "properties": {}},
        },
        {
            "name": "validate_directories",
            "description": (
                "Check if directories are within allowed paths "
                "(only available when restrict_working_directory is enabled)"
            ),
            "inputSchema": build_validate_directories_schema(enabled_shells),
        },
    ]
    return tools


def text_result(text: str, *, is_error: bool = False, **metadata: Any) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error, "metadata": metadata}


def format_result(result: ExecutionResult, shell: str, working_dir: str) -> dict[str, Any]:
    """Tool result for a finished process. Any exit code is reported, not raised."""
    if result.exit_code == 0:
        text = result.stdout or "Command completed successfully (no output)"
    else:
        text = f"Command failed with exit code {result.exit_code}\n"
        if result.stderr:
            text += f"Error output:\n{result.stderr}\n"
        if result.stdout:
            text += f"Standard output:\n{result.stdout}"
    return text_result(
        text,
        is_error=result.exit_code != 0,
        exit_code=result.exit_code,
        shell=shell,
        working_directory=working_dir,
    )
