"""Re-export persistence protocols from core for convenience."""

from __future__ import annotations

from wasabi_mcp.core.protocols import ByteSink, ByteSource, IFileSystem, IStorageGateway

__all__ = ["ByteSink", "ByteSource", "IFileSystem", "IStorageGateway"]
