"""Command-line entry point.

Usage:
    wasabi-mcp                       # stdio, for desktop MCP clients
    wasabi-mcp --transport http --port 3000
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog

from wasabi_mcp.core.config import AppSettings, load_settings
from wasabi_mcp.core.exceptions import ConfigurationError
from wasabi_mcp.core.logging import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Wasabi MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default=None,
        help="MCP transport (default: WASABI_MCP_TRANSPORT or stdio).",
    )
    parser.add_argument("--host", default=None, help="HTTP bind address.")
    parser.add_argument("--port", type=int, default=None, help="HTTP listening port.")
    return parser


def apply_overrides(settings: AppSettings, arguments: argparse.Namespace) -> AppSettings:
    overrides = {
        name: getattr(arguments, name)
        for name in ("transport", "host", "port")
        if getattr(arguments, name) is not None
    }
    if overrides:
        settings.server = settings.server.model_copy(update=overrides)
    return settings


def serve_stdio(settings: AppSettings) -> None:
    from wasabi_mcp.mcp_servers.server import session_servers
    from wasabi_mcp.mcp_servers.stdio_server import StdioServer
    from wasabi_mcp.persistence import create_gateway
    from wasabi_mcp.sessions.manager import SessionManager
    from wasabi_mcp.tools.dispatcher import Dispatcher
    from wasabi_mcp.tools.registry import ToolRegistry

    registry = ToolRegistry()
    dispatcher = Dispatcher(registry, create_gateway(settings))
    # The process lifetime bounds the single stdio session.
    sessions = SessionManager(idle_timeout=None)
    server = StdioServer(sessions, session_servers(registry, dispatcher, sessions))
    asyncio.run(server.run())


def serve_http(settings: AppSettings) -> None:
    import uvicorn

    from wasabi_mcp.api.app import create_app

    app = create_app(settings)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)


def run(argv: Optional[Sequence[str]] = None) -> int:
    arguments = build_parser().parse_args(argv)
    configure_logging()
    try:
        settings = apply_overrides(load_settings(), arguments)
    except ConfigurationError as exc:
        logger.error("configuration_invalid", error=str(exc))
        return 1

    configure_logging(settings.log_level, settings.log_format)
    if settings.server.transport == "http":
        serve_http(settings)
    else:
        serve_stdio(settings)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
