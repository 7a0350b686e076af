"""Streamable HTTP endpoint: one path, three methods, sessions by header.

Session bookkeeping happens here; the per-session SDK transport does the
MCP framing once the session is resolved.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import structlog
from mcp import types
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from wasabi_mcp.core.exceptions import SessionNotFoundError
from wasabi_mcp.mcp_servers.server import TRANSPORT_ERROR
from wasabi_mcp.sessions.manager import Session, SessionManager, SessionState

logger = structlog.get_logger()

SESSION_HEADER = "Mcp-Session-Id"
MCP_PATH = "/mcp"
ALLOWED_METHODS = "GET, POST, DELETE"


def transport_error(status_code: int, message: str, code: int = TRANSPORT_ERROR) -> JSONResponse:
    error = types.JSONRPCError(
        jsonrpc="2.0",
        id="server-error",
        error=types.ErrorData(code=code, message=message, data={"kind": _kind(code)}),
    )
    return JSONResponse(status_code=status_code, content=error.model_dump(by_alias=True, exclude_none=True))


def _kind(code: int) -> str:
    return "ParseError" if code == types.PARSE_ERROR else "TransportError"


def _is_malformed_notification(payload: Any) -> bool:
    """A notification whose params are present but not an object."""
    return (
        isinstance(payload, dict)
        and "method" in payload
        and "id" not in payload
        and payload.get("params") is not None
        and not isinstance(payload["params"], dict)
    )


def _with_session_header(scope: Scope, session_id: str) -> Scope:
    name = SESSION_HEADER.lower().encode("latin-1")
    headers = [(k, v) for k, v in scope["headers"] if k.lower() != name]
    headers.append((name, session_id.encode("latin-1")))
    return {**scope, "headers": headers}


def _replay(body: bytes, receive: Receive) -> Receive:
    """Hand an already-read body to the transport, then defer to the real channel."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class McpEndpoint:
    """ASGI app serving ``/mcp`` for every HTTP method."""

    def __init__(self, sessions: SessionManager) -> None:
        self._sessions = sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        match request.method:
            case "POST":
                response = await self._post(request, send)
            case "GET":
                response = await self._get(request, send)
            case "DELETE":
                response = await self._delete(request)
            case _:
                response = transport_error(405, "Method not allowed.")
                response.headers["Allow"] = ALLOWED_METHODS
        if response is not None:
            await response(scope, receive, send)

    def _known_session(self, request: Request) -> Session | JSONResponse:
        """Validate the session header without touching the registry's mutators."""
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id:
            return transport_error(400, "Bad Request: No valid session ID provided")
        session = self._sessions.get(session_id)
        if session is None:
            return transport_error(404, "Session not found")
        return session

    async def _post(self, request: Request, send: Send) -> Optional[Response]:
        """Initiate or continue an exchange."""
        body = await request.body()
        try:
            payload = json.loads(body)
        except ValueError as exc:
            return transport_error(400, f"Parse error: {exc}", code=types.PARSE_ERROR)
        if _is_malformed_notification(payload):
            logger.info("notification_dropped", method=payload.get("method"))
            return Response(status_code=202)

        carried = request.headers.get(SESSION_HEADER)
        session = await self._sessions.resolve(carried)
        if carried == session.id and session.state is SessionState.INITIALIZING:
            # The client echoed the identifier back, so it has received it.
            await self._sessions.mark_active(session.id)

        await session.transport.handle_request(
            _with_session_header(request.scope, session.id), _replay(body, request.receive), send,
        )
        return None

    async def _get(self, request: Request, send: Send) -> Optional[Response]:
        """Stream server-initiated messages for an established session."""
        if "text/event-stream" not in request.headers.get("accept", ""):
            return transport_error(406, "Not Acceptable: Client must accept text/event-stream")
        session = self._known_session(request)
        if isinstance(session, JSONResponse):
            return session
        session.touch()
        logger.info("stream_opened", session_id=session.id)
        await session.transport.handle_request(request.scope, request.receive, send)
        return None

    async def _delete(self, request: Request) -> Response:
        session = self._known_session(request)
        if isinstance(session, JSONResponse):
            return session
        try:
            await self._sessions.terminate(session.id)
        except SessionNotFoundError:
            return transport_error(404, "Session not found")
        return JSONResponse(content={"status": "terminated", "sessionId": session.id})


def mcp_route(sessions: SessionManager) -> Route:
    return Route(MCP_PATH, endpoint=McpEndpoint(sessions), name="mcp")
