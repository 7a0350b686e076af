"""Routes validated tool calls to storage gateway operations."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

import structlog

from wasabi_mcp.core.exceptions import MethodNotFoundError
from wasabi_mcp.core.protocols import IFileSystem, IStorageGateway
from wasabi_mcp.models.envelopes import ToolResult
from wasabi_mcp.models.tools import ToolCall
from wasabi_mcp.persistence.local_files import LocalFileSystem
from wasabi_mcp.tools.errors import translate_error
from wasabi_mcp.tools.registry import ToolRegistry

logger = structlog.get_logger()


class Dispatcher:
    """Executes tool calls and wraps every outcome in a ToolResult.

    Calls are independent: no retries, no caching and no ordering between
    concurrent dispatches. Exceptions never escape ``dispatch``.
    """

    def __init__(self, registry: ToolRegistry, gateway: IStorageGateway,
                 files: Optional[IFileSystem] = None) -> None:
        self._registry = registry
        self._gateway = gateway
        self._files = files if files is not None else LocalFileSystem()

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Validate and dispatch a raw call as received from the wire."""
        try:
            call = self._registry.validate(name, arguments)
        except Exception as exc:
            return self._failure(name, exc)
        return await self.dispatch(call, validated=True)

    async def dispatch(self, call: ToolCall, validated: bool = False) -> ToolResult:
        try:
            if not validated:
                call = self._registry.validate(call.name, call.arguments)
            result = await self._route(call)
        except Exception as exc:
            return self._failure(call.name, exc)
        logger.debug("tool_call_succeeded", tool=call.name, action=call.action)
        return result

    def _failure(self, tool: str, exc: Exception) -> ToolResult:
        error = translate_error(exc)
        logger.warning("tool_call_failed", tool=tool, kind=str(error.kind), error=error.message)
        return ToolResult.failure(error.kind, error.message)

    async def _route(self, call: ToolCall) -> ToolResult:
        args = call.arguments
        gateway = self._gateway

        match (call.name, call.action):
            case ("bucket", "list"):
                buckets = await gateway.list_buckets()
                return ToolResult.text(_json_list(buckets))
            case ("bucket", "create"):
                await gateway.create_bucket(args["name"])
                return ToolResult.text(f"Bucket '{args['name']}' created successfully")
            case ("bucket", "delete"):
                await gateway.delete_bucket(args["name"])
                return ToolResult.text(f"Bucket '{args['name']}' deleted successfully")
            case ("bucket", "location"):
                location = await gateway.locate_bucket(args["name"])
                return ToolResult.text(location.to_json())
            case ("object", "list"):
                listing = await gateway.list_objects(
                    args["bucket"], prefix=args.get("prefix"), max_keys=args["max_keys"],
                )
                return ToolResult.text(listing.to_json())
            case ("object", "upload"):
                with self._files.open_source(args["local_path"]) as source:
                    await gateway.put_object(
                        args["bucket"], args["key"], source, content_type=args.get("content_type"),
                    )
                return ToolResult.text(f"File uploaded successfully to {args['bucket']}/{args['key']}")
            case ("object", "download"):
                with self._files.open_sink(args["local_path"]) as sink:
                    await gateway.get_object(args["bucket"], args["key"], sink)
                return ToolResult.text(f"Object downloaded successfully to {args['local_path']}")
            case ("object", "delete"):
                await gateway.delete_object(args["bucket"], args["key"])
                return ToolResult.text(f"Object {args['bucket']}/{args['key']} deleted successfully")
            case ("object", "metadata"):
                metadata = await gateway.head_object(args["bucket"], args["key"])
                return ToolResult.text(metadata.to_json())
            case ("presign", None):
                presigned = await gateway.presign(
                    args["bucket"],
                    args["key"],
                    operation=args["operation"],
                    expires_in=args["expires_in"],
                    content_type=args.get("content_type"),
                )
                return ToolResult.text(presigned.to_json())
            case _:
                raise MethodNotFoundError(f"Unknown tool: {call.name}")


def _json_list(items: list) -> str:
    return json.dumps([item.model_dump(mode="json", by_alias=True) for item in items], indent=2)
