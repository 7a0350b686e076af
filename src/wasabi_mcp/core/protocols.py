"""Protocol interfaces for wasabi-mcp abstractions.

Structural typing throughout: backends and test doubles satisfy these
without inheriting from them.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Optional, Protocol, runtime_checkable

from wasabi_mcp.models.storage import (
    BucketLocation,
    BucketSummary,
    ObjectListing,
    ObjectMetadata,
    PresignedUrl,
    PresignOperation,
)


# ---------------------------------------------------------------------------
# Byte streams
# ---------------------------------------------------------------------------

@runtime_checkable
class ByteSource(Protocol):
    """Readable binary stream consumed chunk by chunk."""

    def read(self, size: int = -1) -> bytes: ...


@runtime_checkable
class ByteSink(Protocol):
    """Writable binary stream fed chunk by chunk."""

    def write(self, data: bytes) -> int: ...


@runtime_checkable
class IFileSystem(Protocol):
    """Local payload storage for uploads and downloads."""

    def open_source(self, path: str) -> AbstractContextManager[ByteSource]: ...

    def open_sink(self, path: str) -> AbstractContextManager[ByteSink]: ...


# ---------------------------------------------------------------------------
# Storage gateway
# ---------------------------------------------------------------------------

@runtime_checkable
class IStorageGateway(Protocol):
    """S3-compatible object storage. Backend failures propagate unchanged."""

    async def list_buckets(self) -> list[BucketSummary]: ...

    async def create_bucket(self, name: str) -> None: ...

    async def delete_bucket(self, name: str) -> None: ...

    async def locate_bucket(self, name: str) -> BucketLocation: ...

    async def list_objects(
        self, bucket: str, prefix: Optional[str] = None, max_keys: int = 1000
    ) -> ObjectListing: ...

    async def put_object(
        self, bucket: str, key: str, source: ByteSource, content_type: Optional[str] = None
    ) -> None: ...

    async def get_object(self, bucket: str, key: str, sink: ByteSink) -> int: ...

    async def delete_object(self, bucket: str, key: str) -> None: ...

    async def head_object(self, bucket: str, key: str) -> ObjectMetadata: ...

    async def presign(
        self,
        bucket: str,
        key: str,
        operation: PresignOperation = "get",
        expires_in: int = 3600,
        content_type: Optional[str] = None,
    ) -> PresignedUrl: ...
