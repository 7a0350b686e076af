"""Tool descriptor and tool call schemas."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolParameter(BaseModel):
    """Parameter definition for a tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: Literal["string", "number"]
    description: str
    required: bool = False
    enum: Optional[tuple[str, ...]] = None
    default: Any = None
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    integral: bool = False  # numbers must be whole

    def json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.default is not None:
            schema["default"] = self.default
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema


class ToolDescriptor(BaseModel):
    """Immutable definition of a single callable tool.

    ``actions`` maps each action of a multiplexed tool to the parameters that
    action additionally requires. It is empty for tools without actions.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: tuple[ToolParameter, ...]
    actions: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @property
    def is_multiplexed(self) -> bool:
        return bool(self.actions)

    def parameter(self, name: str) -> Optional[ToolParameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {p.name: p.json_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
        }

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


class ToolCall(BaseModel):
    """A single tool invocation: tool name plus its arguments."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    @property
    def action(self) -> Optional[str]:
        return self.arguments.get("action")
