"""
MCP server for the shell gateway: newline-delimited JSON-RPC 2.0 over stdio.

Run: shellgate (or python -m shellgate.main)

Tools:
- execute_command(shell, command, workingDir?) - run a validated command.
- get_current_directory() / set_current_directory(path) - active directory.
- get_config() - configuration with resolved per-shell policies.
- validate_directories(directories, shell?) - check paths against the allow-list.

Logs go to stderr; stdout carries protocol messages only.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Optional, TextIO

from shellgate import __version__
from shellgate.core.errors import GatewayError
from shellgate.core.gateway import ShellGateway
from shellgate.core.tools import build_tools_spec, text_result

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
CONFIG_RESOURCE_URI = "cli://config"

INVALID_PARAMS = -32602
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


class RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _require_str(arguments: dict, key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str):
        raise RpcError(INVALID_PARAMS, f"Invalid arguments: '{key}' must be a string")
    return value


def _optional_str(arguments: dict, key: str) -> Optional[str]:
    value = arguments.get(key)
    if value is not None and not isinstance(value, str):
        raise RpcError(INVALID_PARAMS, f"Invalid arguments: '{key}' must be a string")
    return value


def _preview(result: dict) -> str:
    for c in result.get("content", [])[:1]:
        if isinstance(c, dict) and c.get("type") == "text":
            return (c.get("text") or "")[:200].replace("\n", " ")
    return ""


class ToolHandler:
    """Maps tool calls onto the gateway. Gateway errors become isError results."""

    def __init__(self, gateway: ShellGateway) -> None:
        self.gateway = gateway

    def list_tools(self) -> list[dict[str, Any]]:
        return build_tools_spec(self.gateway.enabled_shells, self.gateway.resolved_configs)

    async def call(self, name: str, arguments: dict) -> dict[str, Any]:
        if not isinstance(arguments, dict):
            raise RpcError(INVALID_PARAMS, "Invalid arguments: expected an object")
        if name == "execute_command":
            return await self._execute_command(arguments)
        if name == "get_current_directory":
            return self._get_current_directory()
        if name == "set_current_directory":
            return self._set_current_directory(arguments)
        if name == "get_config":
            return text_result(json.dumps(self.gateway.describe_config(), indent=2))
        if name == "validate_directories":
            return self._validate_directories(arguments)
        raise RpcError(INVALID_PARAMS, f"Unknown tool: {name}")

    async def _execute_command(self, arguments: dict) -> dict[str, Any]:
        if not self.gateway.enabled_shells:
            return text_result("No shells are enabled in the configuration", is_error=True)
        shell = _require_str(arguments, "shell")
        command = _require_str(arguments, "command")
        working_dir = _optional_str(arguments, "workingDir")
        try:
            return await self.gateway.execute(shell, command, working_dir)
        except GatewayError as e:
            return text_result(f"Error: {e}", is_error=True, shell=shell)

    def _get_current_directory(self) -> dict[str, Any]:
        current = self.gateway.get_active_directory()
        if current is None:
            return text_result(
                "The server's active working directory is not currently set. "
                "Use 'set_current_directory' to set it."
            )
        return text_result(current)

    def _set_current_directory(self, arguments: dict) -> dict[str, Any]:
        path = _require_str(arguments, "path")
        try:
            previous, new = self.gateway.set_active_directory(path)
        except GatewayError as e:
            return text_result(
                f"Failed to change directory: {e}", is_error=True, requested_directory=path
            )
        return text_result(
            f"Current directory changed to: {new}",
            previous_directory=previous,
            new_directory=new,
        )

    def _validate_directories(self, arguments: dict) -> dict[str, Any]:
        directories = arguments.get("directories")
        if (
            not isinstance(directories, list)
            or not directories
            or not all(isinstance(d, str) for d in directories)
        ):
            raise RpcError(
                INVALID_PARAMS,
                "Invalid arguments for validate_directories: 'directories' must be a non-empty list of strings",
            )
        shell = _optional_str(arguments, "shell")
        try:
            invalid = self.gateway.validate_directories(directories, shell)
        except GatewayError as e:
            return text_result(str(e), is_error=True)
        if invalid:
            if shell:
                allowed = self.gateway.allowed_paths_for(shell)
                label = f" for {shell}"
            else:
                allowed = list(self.gateway.config.global_policy.paths.allowed_paths)
                label = ""
            return text_result(
                f"The following directories are invalid{label}: {', '.join(invalid)}. "
                f"Allowed paths: {', '.join(allowed)}",
                is_error=True,
                invalid_directories=invalid,
                shell=shell,
            )
        return text_result("All specified directories are valid and within allowed paths.")


class McpDispatcher:
    """Transport-independent JSON-RPC handling shared by stdio and HTTP."""

    def __init__(self, gateway: ShellGateway, server_name: str = "shellgate") -> None:
        self.tools = ToolHandler(gateway)
        self.gateway = gateway
        self.server_name = server_name

    def _read_resource(self, uri: Any) -> dict[str, Any]:
        if uri != CONFIG_RESOURCE_URI:
            raise RpcError(INVALID_PARAMS, f"Unknown resource URI: {uri}")
        configuration = self.gateway.describe_config()["configuration"]
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": "application/json",
                    "text": json.dumps(configuration, indent=2),
                }
            ]
        }

    def handle(self, request: dict[str, Any], transport: str = "stdio") -> Optional[dict[str, Any]]:
        """Response for one request, or None for notifications."""
        method = request.get("method")
        req_id = request.get("id")
        params = request.get("params") or {}

        def reply(result: Any = None, error: Optional[dict] = None) -> dict[str, Any]:
            out: dict[str, Any] = {"jsonrpc": "2.0", "id": req_id}
            if error is not None:
                out["error"] = error
            else:
                out["result"] = result
            return out

        if method == "initialize":
            return reply(
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {"tools": {}, "resources": {}},
                    "serverInfo": {"name": self.server_name, "version": __version__},
                }
            )
        if isinstance(method, str) and method.startswith("notifications/"):
            return None
        try:
            if method == "tools/list":
                return reply({"tools": self.tools.list_tools()})
            if method == "resources/list":
                return reply(
                    {
                        "resources": [
                            {
                                "uri": CONFIG_RESOURCE_URI,
                                "name": "Shell Gateway Configuration",
                                "description": "Gateway configuration (excluding credentials)",
                                "mimeType": "application/json",
                            }
                        ]
                    }
                )
            if method == "resources/read":
                return reply(self._read_resource(params.get("uri")))
            if method == "tools/call":
                name = params.get("name")
                args = params.get("arguments") or {}
                logger.info(
                    "MCP tools/call request transport=%s tool=%s arguments=%s",
                    transport,
                    name,
                    json.dumps(args, ensure_ascii=False)[:500],
                )
                result = asyncio.run(self.tools.call(name, args))
                logger.info(
                    "MCP tools/call response transport=%s tool=%s result_preview=%s",
                    transport,
                    name,
                    _preview(result) or "(empty)",
                )
                return reply(result)
        except RpcError as e:
            logger.warning("MCP %s rejected: %s", method, e.message)
            return reply(error={"code": e.code, "message": e.message})
        except Exception as e:
            logger.exception("MCP %s failed: %s", method, e)
            return reply(error={"code": INTERNAL_ERROR, "message": str(e)})
        if req_id is None:
            return None
        return reply(error={"code": METHOD_NOT_FOUND, "message": f"Method not found: {method}"})


def run_stdio(
    dispatcher: McpDispatcher, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None
) -> None:
    """Read JSON-RPC lines from stdin, write responses to stdout."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    while True:
        line = stdin.readline()
        if not line:
            break
        line = line.strip()
        if not line:
            continue
        try:
            req = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON: %s", e)
            continue
        if not isinstance(req, dict):
            logger.warning("Ignoring non-object JSON-RPC message")
            continue
        response = dispatcher.handle(req)
        if response is not None:
            stdout.write(json.dumps(response) + "\n")
            stdout.flush()
