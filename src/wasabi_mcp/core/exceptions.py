"""Wasabi MCP exception hierarchy."""

from __future__ import annotations

from wasabi_mcp.models.envelopes import ErrorKind


class WasabiMcpError(Exception):
    """Base exception for all wasabi-mcp errors."""


class ConfigurationError(WasabiMcpError):
    """Required configuration is missing or invalid. Fatal at startup."""


class ToolError(WasabiMcpError):
    """A tool call failed with a typed error kind."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidParamsError(ToolError):
    """Malformed or missing tool-call arguments."""

    kind = ErrorKind.INVALID_PARAMS


class MethodNotFoundError(ToolError):
    """The requested tool is not registered."""

    kind = ErrorKind.METHOD_NOT_FOUND


class NotFoundError(ToolError):
    """A referenced bucket, object or session does not exist."""

    kind = ErrorKind.NOT_FOUND


class InternalError(ToolError):
    """Any backend failure not otherwise classified."""

    kind = ErrorKind.INTERNAL_ERROR


class SessionNotFoundError(NotFoundError):
    """No live session is registered under the identifier."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")
