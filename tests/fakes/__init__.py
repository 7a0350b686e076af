"""Shared test doubles: re-exported memory backends."""

from __future__ import annotations

from wasabi_mcp.persistence.memory_backend import (
    MemoryFileSystem,
    MemoryStorageGateway,
    StoredBucket,
    StoredObject,
)

__all__ = ["MemoryFileSystem", "MemoryStorageGateway", "StoredBucket", "StoredObject"]
