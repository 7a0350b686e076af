"""One SDK streamable HTTP transport and MCP server per session."""

from __future__ import annotations

import asyncio

import structlog
from mcp.server.streamable_http import StreamableHTTPServerTransport

from wasabi_mcp.mcp_servers.server import ServerFactory
from wasabi_mcp.sessions.manager import Session

logger = structlog.get_logger()


class StreamableHttpHost:
    """Session opener that starts an MCP server behind a fresh HTTP transport."""

    def __init__(self, servers: ServerFactory) -> None:
        self._servers = servers

    async def open(self, session: Session) -> None:
        transport = StreamableHTTPServerTransport(mcp_session_id=session.id)
        server = self._servers(session)
        connected = asyncio.Event()

        async def serve() -> None:
            async with transport.connect() as (read_stream, write_stream):
                connected.set()
                await server.run(read_stream, write_stream, server.create_initialization_options())

        runner = asyncio.create_task(serve(), name=f"mcp-session-{session.id}")
        waiter = asyncio.create_task(connected.wait())
        await asyncio.wait({runner, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if runner.done():
            waiter.cancel()
            runner.result()
        session.bind(transport, runner)
        logger.debug("transport_opened", session_id=session.id)
