"""S3-compatible storage gateway implementing IStorageGateway.

boto3 is synchronous, so every backend call runs in a worker thread. The
client is created once and shared by all calls; it holds no per-call state.
Backend exceptions are deliberately not caught here.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import boto3
from boto3.s3.transfer import TransferConfig

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

DEFAULT_REGION = "us-east-1"

_PRESIGN_METHODS = {"get": "get_object", "put": "put_object"}


class S3StorageGateway:
    """Production IStorageGateway backed by boto3."""

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, access_key_id: str, secret_access_key: str,
                 region: str = DEFAULT_REGION, endpoint_url: str | None = None) -> None:
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {
            "region_name": region,
            "aws_access_key_id": access_key_id,
            "aws_secret_access_key": secret_access_key,
        }
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)
        self._transfer_config = TransferConfig(multipart_chunksize=8 * self.CHUNK_SIZE)

    @property
    def client(self) -> Any:
        return self._client

    async def list_buckets(self) -> list[BucketSummary]:
        resp = await asyncio.to_thread(self._client.list_buckets)
        return [
            BucketSummary(name=b["Name"], creation_date=b.get("CreationDate"))
            for b in resp.get("Buckets", [])
        ]

    async def create_bucket(self, name: str) -> None:
        kwargs: dict = {"Bucket": name}
        if self._region != DEFAULT_REGION:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
        await asyncio.to_thread(self._client.create_bucket, **kwargs)

    async def delete_bucket(self, name: str) -> None:
        await asyncio.to_thread(self._client.delete_bucket, Bucket=name)

    async def locate_bucket(self, name: str) -> BucketLocation:
        resp = await asyncio.to_thread(self._client.get_bucket_location, Bucket=name)
        # No LocationConstraint means the backend's default region.
        return BucketLocation(bucket=name, location=resp.get("LocationConstraint") or DEFAULT_REGION)

    async def list_objects(self, bucket: str, prefix: Optional[str] = None,
                           max_keys: int = 1000) -> ObjectListing:
        kwargs: dict = {"Bucket": bucket, "MaxKeys": max_keys}
        if prefix:
            kwargs["Prefix"] = prefix
        resp = await asyncio.to_thread(self._client.list_objects_v2, **kwargs)
        objects = [
            ObjectSummary(
                key=obj["Key"],
                size=obj.get("Size", 0),
                last_modified=obj.get("LastModified"),
                etag=obj.get("ETag"),
            )
            for obj in resp.get("Contents", [])
        ]
        return ObjectListing(
            bucket=bucket,
            count=resp.get("KeyCount", len(objects)),
            is_truncated=resp.get("IsTruncated", False),
            objects=objects,
        )

    async def put_object(self, bucket: str, key: str, source: ByteSource,
                         content_type: Optional[str] = None) -> None:
        extra_args = {"ContentType": content_type} if content_type else None
        await asyncio.to_thread(
            self._client.upload_fileobj,
            source,
            bucket,
            key,
            ExtraArgs=extra_args,
            Config=self._transfer_config,
        )

    async def get_object(self, bucket: str, key: str, sink: ByteSink) -> int:
        return await asyncio.to_thread(self._stream_object, bucket, key, sink)

    def _stream_object(self, bucket: str, key: str, sink: ByteSink) -> int:
        resp = self._client.get_object(Bucket=bucket, Key=key)
        body = resp["Body"]
        written = 0
        try:
            for chunk in body.iter_chunks(self.CHUNK_SIZE):
                sink.write(chunk)
                written += len(chunk)
        finally:
            body.close()
        return written

    async def delete_object(self, bucket: str, key: str) -> None:
        await asyncio.to_thread(self._client.delete_object, Bucket=bucket, Key=key)

    async def head_object(self, bucket: str, key: str) -> ObjectMetadata:
        resp = await asyncio.to_thread(self._client.head_object, Bucket=bucket, Key=key)
        return ObjectMetadata(
            bucket=bucket,
            key=key,
            size=resp.get("ContentLength", 0),
            content_type=resp.get("ContentType"),
            last_modified=resp.get("LastModified"),
            etag=resp.get("ETag"),
            metadata=resp.get("Metadata", {}),
        )

    async def presign(self, bucket: str, key: str, operation: PresignOperation = "get",
                      expires_in: int = 3600, content_type: Optional[str] = None) -> PresignedUrl:
        params: dict = {"Bucket": bucket, "Key": key}
        if operation == "put" and content_type:
            params["ContentType"] = content_type
        # Signing is local; no request reaches the backend.
        url = self._client.generate_presigned_url(
            _PRESIGN_METHODS[operation], Params=params, ExpiresIn=expires_in,
        )
        return PresignedUrl(bucket=bucket, key=key, url=url, operation=operation, expires_in=expires_in)
