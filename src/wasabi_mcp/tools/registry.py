"""Tool registry: the published tool surface and argument validation.

Validation is pure. It never touches the storage gateway, so a call that
fails here has no side effects.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional

from wasabi_mcp.core.exceptions import InvalidParamsError, MethodNotFoundError
from wasabi_mcp.models.tools import ToolCall, ToolDescriptor, ToolParameter

MAX_LIST_KEYS = 1000
MAX_PRESIGN_EXPIRY = 7 * 24 * 3600  # SigV4 ceiling

BUCKET_TOOL = ToolDescriptor(
    name="bucket",
    description=(
        "Manage Wasabi buckets. Actions: list (all buckets in the account), "
        "create, delete (bucket must be empty), location (region of a bucket)."
    ),
    parameters=(
        ToolParameter(
            name="action", type="string", required=True,
            description="Operation to perform",
            enum=("list", "create", "delete", "location"),
        ),
        ToolParameter(
            name="name", type="string",
            description="Bucket name (required for create, delete and location)",
        ),
    ),
    actions={
        "list": (),
        "create": ("name",),
        "delete": ("name",),
        "location": ("name",),
    },
)

OBJECT_TOOL = ToolDescriptor(
    name="object",
    description=(
        "Manage objects in a Wasabi bucket. Actions: list, upload (from a local "
        "file), download (to a local file), delete, metadata."
    ),
    parameters=(
        ToolParameter(
            name="action", type="string", required=True,
            description="Operation to perform",
            enum=("list", "upload", "download", "delete", "metadata"),
        ),
        ToolParameter(name="bucket", type="string", required=True, description="Name of the bucket"),
        ToolParameter(name="key", type="string", description="Object key (path) in the bucket"),
        ToolParameter(
            name="local_path", type="string",
            description="Local file to upload from or download to",
        ),
        ToolParameter(name="prefix", type="string", description="Only list keys starting with this prefix"),
        ToolParameter(
            name="max_keys", type="number", integral=True,
            description=f"Maximum number of objects to list (default: {MAX_LIST_KEYS})",
            default=MAX_LIST_KEYS, minimum=1, maximum=MAX_LIST_KEYS,
        ),
        ToolParameter(name="content_type", type="string", description="Content type (MIME type) for uploads"),
    ),
    actions={
        "list": (),
        "upload": ("key", "local_path"),
        "download": ("key", "local_path"),
        "delete": ("key",),
        "metadata": ("key",),
    },
)

PRESIGN_TOOL = ToolDescriptor(
    name="presign",
    description="Generate a presigned URL granting temporary access to an object",
    parameters=(
        ToolParameter(name="bucket", type="string", required=True, description="Name of the bucket"),
        ToolParameter(name="key", type="string", required=True, description="Object key (path)"),
        ToolParameter(
            name="operation", type="string",
            description="Operation the URL allows (default: get)",
            enum=("get", "put"), default="get",
        ),
        ToolParameter(
            name="expires_in", type="number", integral=True,
            description="URL expiration time in seconds (default: 3600)",
            default=3600, minimum=1, maximum=MAX_PRESIGN_EXPIRY,
        ),
        ToolParameter(
            name="content_type", type="string",
            description="Content type the uploader must send (put only)",
        ),
    ),
)

DEFAULT_TOOLS: tuple[ToolDescriptor, ...] = (BUCKET_TOOL, OBJECT_TOOL, PRESIGN_TOOL)


def _check_type(param: ToolParameter, value: Any) -> None:
    if param.type == "string":
        if not isinstance(value, str):
            raise InvalidParamsError(f"Parameter '{param.name}' must be a string")
        return

    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidParamsError(f"Parameter '{param.name}' must be a number")
    if param.integral and value != int(value):
        raise InvalidParamsError(f"Parameter '{param.name}' must be a whole number")
    if param.minimum is not None and value < param.minimum:
        raise InvalidParamsError(f"Parameter '{param.name}' must be at least {param.minimum}")
    if param.maximum is not None and value > param.maximum:
        raise InvalidParamsError(f"Parameter '{param.name}' must be at most {param.maximum}")


class ToolRegistry:
    """Fixed set of tool descriptors, enumerable and validating."""

    def __init__(self, descriptors: Iterable[ToolDescriptor] = DEFAULT_TOOLS) -> None:
        self._tools = tuple(descriptors)
        self._by_name = {tool.name: tool for tool in self._tools}
        if len(self._by_name) != len(self._tools):
            raise ValueError("tool names must be unique")

    def list_tools(self) -> tuple[ToolDescriptor, ...]:
        return self._tools

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def validate(self, name: str, arguments: Optional[Mapping[str, Any]]) -> ToolCall:
        """Check a call against its tool's schema and return it with defaults applied."""
        tool = self._by_name.get(name)
        if tool is None:
            raise MethodNotFoundError(f"Unknown tool: {name}")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise InvalidParamsError("Tool arguments must be an object")

        for param in tool.parameters:
            if param.required and arguments.get(param.name) is None:
                raise InvalidParamsError(f"Missing required parameter: {param.name}")

        resolved: dict[str, Any] = {}
        for param in tool.parameters:
            value = arguments.get(param.name)
            if value is None:
                if param.default is not None:
                    resolved[param.name] = param.default
                continue
            _check_type(param, value)
            if param.enum is not None and value not in param.enum:
                allowed = ", ".join(param.enum)
                raise InvalidParamsError(
                    f"Invalid value for '{param.name}': {value!r} (expected one of: {allowed})"
                )
            resolved[param.name] = int(value) if param.integral else value

        if tool.is_multiplexed:
            for required in tool.actions[resolved["action"]]:
                if required not in resolved:
                    raise InvalidParamsError(
                        f"Missing required parameter for action '{resolved['action']}': {required}"
                    )

        return ToolCall(name=name, arguments=resolved)
