"""MCP over stdin/stdout. The channel is the session."""

from __future__ import annotations

from typing import Any

import structlog
from mcp.server.stdio import stdio_server

from wasabi_mcp.core.exceptions import SessionNotFoundError
from wasabi_mcp.mcp_servers.server import ServerFactory
from wasabi_mcp.sessions.manager import SessionManager

logger = structlog.get_logger()


class StdioServer:
    """Serves one client over a pair of SDK message streams."""

    def __init__(self, sessions: SessionManager, servers: ServerFactory) -> None:
        self._sessions = sessions
        self._servers = servers

    async def serve(self, read_stream: Any, write_stream: Any) -> None:
        """Run until the client closes its side of the channel."""
        session = await self._sessions.resolve()
        session.bind((read_stream, write_stream))
        server = self._servers(session)
        logger.info("stdio_session_started", session_id=session.id)
        try:
            await server.run(read_stream, write_stream, server.create_initialization_options())
        finally:
            try:
                await self._sessions.terminate(session.id)
            except SessionNotFoundError:
                logger.debug("stdio_session_already_terminated", session_id=session.id)
            logger.info("stdio_session_closed", session_id=session.id)

    async def run(self) -> None:
        """Serve the process's own stdin and stdout."""
        logger.info("server_running", transport="stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self.serve(read_stream, write_stream)
