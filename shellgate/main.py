"""Entry point: load config, build the gateway, serve MCP over stdio or HTTP."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from shellgate.config import create_default_config, get_config
from shellgate.core.errors import ConfigError
from shellgate.core.gateway import ShellGateway
from shellgate.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shellgate",
        description="Policy-checked shell command gateway (MCP over stdio or HTTP).",
    )
    parser.add_argument("--config", help="Path to a YAML or JSON config file.")
    parser.add_argument(
        "--init-config",
        metavar="PATH",
        help="Write the default configuration to PATH and exit.",
    )
    parser.add_argument("--http", action="store_true", help="Serve JSON-RPC over HTTP instead of stdio.")
    parser.add_argument("--host", help="HTTP bind address (default from config).")
    parser.add_argument("--port", type=int, help="HTTP port (default from config).")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.init_config:
        path = create_default_config(args.init_config)
        print(f"Default configuration written to {path}", file=sys.stderr)
        return 0

    try:
        config = get_config(args.config)
    except ConfigError as e:
        setup_logging()
        logger.error("Cannot start: %s", e)
        return 1
    setup_logging(config.logging.level, use_json=config.logging.json_format)

    gateway = ShellGateway(config)
    logger.info("enabled shells: %s", ", ".join(s.value for s in gateway.enabled_shells) or "(none)")

    if args.http:
        from shellgate.http_api import create_app

        host = args.host or config.http.host
        port = args.port or config.http.port
        if not config.http.token and host not in ("127.0.0.1", "localhost", "::1"):
            logger.warning("HTTP API bound to %s without a token", host)
        create_app(gateway, token=config.http.token).run(host=host, port=port)
        return 0

    from shellgate.mcp_server import McpDispatcher, run_stdio

    run_stdio(McpDispatcher(gateway))
    return 0


if __name__ == "__main__":
    sys.exit(main())
