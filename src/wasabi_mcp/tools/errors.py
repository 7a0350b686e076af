"""Translation of heterogeneous failures into the typed tool error taxonomy."""

from __future__ import annotations

from botocore.exceptions import ClientError

from wasabi_mcp.core.exceptions import InternalError, NotFoundError, ToolError

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "404"})


def _message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def translate_error(exc: Exception) -> ToolError:
    """Map any exception raised during a tool call onto a ToolError.

    Backend text is kept verbatim in the message; tracebacks are not.
    """
    if isinstance(exc, ToolError):
        return exc
    if isinstance(exc, ClientError):
        code = str(exc.response.get("Error", {}).get("Code", ""))
        if code in NOT_FOUND_CODES:
            return NotFoundError(f"Tool execution failed: {_message(exc)}")
    return InternalError(f"Tool execution failed: {_message(exc)}")
