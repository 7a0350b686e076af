"""MCP server wiring on the low-level ``mcp`` SDK server.

The SDK owns the protocol: framing, initialize and version negotiation,
ping and JSON-RPC error replies. This module plugs the tool registry and
dispatcher into it and maps typed tool failures onto JSON-RPC errors.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import structlog
from mcp import types
from mcp.server.lowlevel import Server
from mcp.shared.exceptions import McpError

from wasabi_mcp.core.config import SERVER_NAME, SERVER_VERSION
from wasabi_mcp.core.exceptions import SessionNotFoundError
from wasabi_mcp.models.envelopes import ErrorKind, ToolResult
from wasabi_mcp.sessions.manager import Session, SessionManager
from wasabi_mcp.tools.dispatcher import Dispatcher
from wasabi_mcp.tools.registry import ToolRegistry

logger = structlog.get_logger()

RESOURCE_NOT_FOUND = -32002
TRANSPORT_ERROR = -32000

ERROR_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_PARAMS: types.INVALID_PARAMS,
    ErrorKind.METHOD_NOT_FOUND: types.METHOD_NOT_FOUND,
    ErrorKind.NOT_FOUND: RESOURCE_NOT_FOUND,
    ErrorKind.INTERNAL_ERROR: types.INTERNAL_ERROR,
}

INSTRUCTIONS = (
    "Manage Wasabi cloud storage. Use 'bucket' for bucket operations, 'object' "
    "for listing, uploading, downloading and deleting objects, and 'presign' "
    "for temporary URLs."
)

ServerFactory = Callable[[Session], Server]


def tool_error(result: ToolResult) -> McpError:
    """JSON-RPC error for a failed tool result, tagged with its kind."""
    kind = result.error.kind
    return McpError(types.ErrorData(
        code=ERROR_CODES[kind], message=result.error.message, data={"kind": str(kind)},
    ))


def call_tool_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=item.text) for item in result.content],
        isError=False,
    )


def build_server(registry: ToolRegistry, dispatcher: Dispatcher,
                 on_initialized: Optional[Callable[[], Awaitable[None]]] = None) -> Server:
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION, instructions=INSTRUCTIONS)
    # Dispatches still running when their session goes away finish here.
    inflight: set[asyncio.Task] = set()

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [types.Tool.model_validate(tool.to_wire()) for tool in registry.list_tools()]

    async def progress(token: types.ProgressToken | None, done: float) -> None:
        if token is None:
            return
        ctx = server.request_context
        await ctx.session.send_progress_notification(
            token, done, 1, related_request_id=str(ctx.request_id),
        )

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        params = request.params
        token = params.meta.progressToken if params.meta is not None else None

        await progress(token, 0)
        task = asyncio.ensure_future(dispatcher.call_tool(params.name, params.arguments))
        inflight.add(task)
        task.add_done_callback(inflight.discard)
        try:
            result = await asyncio.shield(task)
        except asyncio.CancelledError:
            logger.info("response_discarded", tool=params.name)
            raise
        await progress(token, 1)

        if result.error is not None:
            raise tool_error(result)
        return types.ServerResult(call_tool_result(result))

    # Failures reply as JSON-RPC errors, not as isError results.
    server.request_handlers[types.CallToolRequest] = call_tool

    if on_initialized is not None:
        async def initialized(_: types.InitializedNotification) -> None:
            await on_initialized()

        server.notification_handlers[types.InitializedNotification] = initialized

    return server


def session_servers(registry: ToolRegistry, dispatcher: Dispatcher,
                    sessions: SessionManager) -> ServerFactory:
    """Factory for per-session servers that activate their session on initialization."""

    def factory(session: Session) -> Server:
        async def initialized() -> None:
            try:
                await sessions.mark_active(session.id)
            except SessionNotFoundError:
                logger.info("initialized_after_termination", session_id=session.id)

        return build_server(registry, dispatcher, on_initialized=initialized)

    return factory
