"""Type aliases used across wasabi-mcp."""

from __future__ import annotations

SessionId = str
