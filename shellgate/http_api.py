"""HTTP transport: the MCP JSON-RPC surface over Flask, with an optional Bearer token."""

from __future__ import annotations

import logging
import secrets

from flask import Flask, jsonify, request

from shellgate import __version__
from shellgate.core.gateway import ShellGateway
from shellgate.mcp_server import McpDispatcher

logger = logging.getLogger(__name__)


def _authorized(token: str) -> bool:
    if not token:
        return True
    auth = request.headers.get("Authorization") or ""
    if not auth.startswith("Bearer "):
        return False
    return secrets.compare_digest(auth[7:].strip(), token)


def create_app(gateway: ShellGateway, token: str = "") -> Flask:
    """App factory. An empty token disables authentication (bind to localhost only)."""
    app = Flask(__name__)
    dispatcher = McpDispatcher(gateway)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify(
            {
                "status": "ok",
                "version": __version__,
                "shells": [s.value for s in gateway.enabled_shells],
                "active_directory_set": gateway.get_active_directory() is not None,
            }
        )

    @app.route("/mcp", methods=["POST"])
    def mcp_post():
        client_addr = request.remote_addr or "unknown"
        if not _authorized(token):
            logger.info("[MCP] POST /mcp (auth failed) address=%s -> 401 Unauthorized", client_addr)
            return jsonify({"jsonrpc": "2.0", "error": {"code": -32001, "message": "Unauthorized"}}), 401
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify(
                {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}
            ), 400
        logger.info("[MCP] POST /mcp method=%s address=%s", data.get("method") or "(empty)", client_addr)
        response = dispatcher.handle(data, transport="http")
        if response is None:
            return "", 204
        return jsonify(response)

    return app
