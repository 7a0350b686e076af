"""In-memory backends for unit tests: dict-backed fakes."""

from __future__ import annotations

import hashlib
import io
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Optional
from urllib.parse import quote

from botocore.exceptions import ClientError

from wasabi_mcp.core.protocols import ByteSink, ByteSource
from wasabi_mcp.models.storage import (
    BucketLocation,
    BucketSummary,
    ObjectListing,
    ObjectMetadata,
    ObjectSummary,
    PresignedUrl,
    PresignOperation,
)


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@dataclass
class StoredObject:
    data: bytes
    content_type: str = "binary/octet-stream"
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def etag(self) -> str:
        return f'"{hashlib.md5(self.data).hexdigest()}"'


@dataclass
class StoredBucket:
    creation_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    location: Optional[str] = None
    objects: dict[str, StoredObject] = field(default_factory=dict)


class MemoryStorageGateway:
    """Dict-backed IStorageGateway for unit tests.

    Every call is appended to ``calls`` as ``(operation, kwargs)`` and missing
    buckets or keys raise the same ``ClientError`` codes the real backend does.
    """

    def __init__(self) -> None:
        self.buckets: dict[str, StoredBucket] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}

    def fail_with(self, operation: str, exc: Exception) -> None:
        """Make the next and all later calls to ``operation`` raise ``exc``."""
        self.failures[operation] = exc

    def _record(self, operation: str, /, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        if operation in self.failures:
            raise self.failures[operation]

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def _bucket(self, name: str, operation: str) -> StoredBucket:
        if name not in self.buckets:
            raise _client_error("NoSuchBucket", "The specified bucket does not exist", operation)
        return self.buckets[name]

    def _object(self, bucket: str, key: str, operation: str) -> StoredObject:
        objects = self._bucket(bucket, operation).objects
        if key not in objects:
            # HEAD responses carry no body, so the backend reports a bare 404.
            code = "404" if operation == "HeadObject" else "NoSuchKey"
            raise _client_error(code, "The specified key does not exist.", operation)
        return objects[key]

    async def list_buckets(self) -> list[BucketSummary]:
        self._record("list_buckets")
        return [
            BucketSummary(name=name, creation_date=b.creation_date)
            for name, b in self.buckets.items()
        ]

    async def create_bucket(self, name: str) -> None:
        self._record("create_bucket", name=name)
        if name in self.buckets:
            raise _client_error("BucketAlreadyOwnedByYou", "Bucket already exists", "CreateBucket")
        self.buckets[name] = StoredBucket()

    async def delete_bucket(self, name: str) -> None:
        self._record("delete_bucket", name=name)
        if self._bucket(name, "DeleteBucket").objects:
            raise _client_error("BucketNotEmpty", "The bucket you tried to delete is not empty", "DeleteBucket")
        del self.buckets[name]

    async def locate_bucket(self, name: str) -> BucketLocation:
        self._record("locate_bucket", name=name)
        location = self._bucket(name, "GetBucketLocation").location
        return BucketLocation(bucket=name, location=location or "us-east-1")

    async def list_objects(self, bucket: str, prefix: Optional[str] = None,
                           max_keys: int = 1000) -> ObjectListing:
        self._record("list_objects", bucket=bucket, prefix=prefix, max_keys=max_keys)
        objects = self._bucket(bucket, "ListObjectsV2").objects
        keys = sorted(k for k in objects if k.startswith(prefix or ""))
        page = keys[:max_keys]
        return ObjectListing(
            bucket=bucket,
            count=len(page),
            is_truncated=len(keys) > max_keys,
            objects=[
                ObjectSummary(
                    key=k,
                    size=len(objects[k].data),
                    last_modified=objects[k].last_modified,
                    etag=objects[k].etag,
                )
                for k in page
            ],
        )

    async def put_object(self, bucket: str, key: str, source: ByteSource,
                         content_type: Optional[str] = None) -> None:
        self._record("put_object", bucket=bucket, key=key, content_type=content_type)
        target = self._bucket(bucket, "PutObject")
        buf = io.BytesIO()
        while chunk := source.read(64 * 1024):
            buf.write(chunk)
        target.objects[key] = StoredObject(
            data=buf.getvalue(), content_type=content_type or "binary/octet-stream",
        )

    async def get_object(self, bucket: str, key: str, sink: ByteSink) -> int:
        self._record("get_object", bucket=bucket, key=key)
        data = self._object(bucket, key, "GetObject").data
        sink.write(data)
        return len(data)

    async def delete_object(self, bucket: str, key: str) -> None:
        self._record("delete_object", bucket=bucket, key=key)
        # Deleting an absent key succeeds, as on S3.
        self._bucket(bucket, "DeleteObject").objects.pop(key, None)

    async def head_object(self, bucket: str, key: str) -> ObjectMetadata:
        self._record("head_object", bucket=bucket, key=key)
        obj = self._object(bucket, key, "HeadObject")
        return ObjectMetadata(
            bucket=bucket,
            key=key,
            size=len(obj.data),
            content_type=obj.content_type,
            last_modified=obj.last_modified,
            etag=obj.etag,
            metadata=dict(obj.metadata),
        )

    async def presign(self, bucket: str, key: str, operation: PresignOperation = "get",
                      expires_in: int = 3600, content_type: Optional[str] = None) -> PresignedUrl:
        self._record("presign", bucket=bucket, key=key, operation=operation,
                     expires_in=expires_in, content_type=content_type)
        method = "GET" if operation == "get" else "PUT"
        url = f"https://{bucket}.memory.invalid/{quote(key)}?X-Method={method}&X-Expires={expires_in}"
        return PresignedUrl(bucket=bucket, key=key, url=url, operation=operation, expires_in=expires_in)


class MemoryFileSystem:
    """Dict-backed IFileSystem for unit tests."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    @contextmanager
    def open_source(self, path: str) -> Iterator[io.BytesIO]:
        if path not in self.files:
            raise FileNotFoundError(2, "No such file or directory", path)
        yield io.BytesIO(self.files[path])

    @contextmanager
    def open_sink(self, path: str) -> Iterator[io.BytesIO]:
        buf = io.BytesIO()
        yield buf
        self.files[path] = buf.getvalue()
