"""Tool-call result envelopes and the error taxonomy."""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ErrorKind(StrEnum):
    INVALID_PARAMS = "InvalidParams"
    METHOD_NOT_FOUND = "MethodNotFound"
    NOT_FOUND = "NotFound"
    INTERNAL_ERROR = "InternalError"


class TextContent(BaseModel):
    """A single text item of a successful tool result."""

    type: str = "text"
    text: str


class ToolFailure(BaseModel):
    kind: ErrorKind
    message: str


class ToolResult(BaseModel):
    """Outcome of one dispatched tool call: content or error, never both."""

    content: list[TextContent] = Field(default_factory=list)
    error: Optional[ToolFailure] = None

    @model_validator(mode="after")
    def _content_xor_error(self) -> ToolResult:
        if self.error is not None and self.content:
            raise ValueError("a tool result carries either content or an error")
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def text(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(text=text)])

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> ToolResult:
        return cls(error=ToolFailure(kind=kind, message=message))
