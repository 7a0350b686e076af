"""Unit tests for S3StorageGateway using moto."""

from __future__ import annotations

import io
from urllib.parse import parse_qs, urlparse

import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from wasabi_mcp.persistence.protocols import IStorageGateway
from wasabi_mcp.persistence.s3_gateway import S3StorageGateway

BUCKET = "test-bucket"


def _gateway(region: str = "us-east-1") -> S3StorageGateway:
    return S3StorageGateway(access_key_id="testing", secret_access_key="testing", region=region)


@pytest.fixture
def s3_gateway():
    with mock_aws():
        gateway = _gateway()
        gateway.client.create_bucket(Bucket=BUCKET)
        yield gateway


def _seed(gateway: S3StorageGateway, key: str, body: bytes = b"x", **kwargs) -> None:
    gateway.client.put_object(Bucket=BUCKET, Key=key, Body=body, **kwargs)


def test_satisfies_protocol(s3_gateway):
    assert isinstance(s3_gateway, IStorageGateway)


class TestBuckets:
    async def test_list_buckets_returns_names_and_dates(self, s3_gateway):
        s3_gateway.client.create_bucket(Bucket="another-bucket")
        buckets = await s3_gateway.list_buckets()
        assert sorted(b.name for b in buckets) == ["another-bucket", BUCKET]
        assert all(b.creation_date is not None for b in buckets)

    async def test_create_and_delete_bucket(self, s3_gateway):
        await s3_gateway.create_bucket("fresh-bucket")
        assert "fresh-bucket" in [b.name for b in await s3_gateway.list_buckets()]
        await s3_gateway.delete_bucket("fresh-bucket")
        assert "fresh-bucket" not in [b.name for b in await s3_gateway.list_buckets()]

    async def test_delete_non_empty_bucket_propagates_backend_error(self, s3_gateway):
        _seed(s3_gateway, "keep.txt")
        with pytest.raises(ClientError) as excinfo:
            await s3_gateway.delete_bucket(BUCKET)
        assert excinfo.value.response["Error"]["Code"] == "BucketNotEmpty"

    async def test_default_region_location_is_surfaced(self, s3_gateway):
        location = await s3_gateway.locate_bucket(BUCKET)
        assert location.bucket == BUCKET
        assert location.location == "us-east-1"

    async def test_non_default_region_sends_location_constraint(self):
        with mock_aws():
            gateway = _gateway(region="eu-west-1")
            await gateway.create_bucket("eu-bucket")
            location = await gateway.locate_bucket("eu-bucket")
        assert location.location == "eu-west-1"


class TestListObjects:
    async def test_filters_by_prefix(self, s3_gateway):
        _seed(s3_gateway, "logs/a.txt")
        _seed(s3_gateway, "logs/b.txt")
        _seed(s3_gateway, "data/c.txt")
        listing = await s3_gateway.list_objects(BUCKET, prefix="logs/")
        assert listing.count == 2
        assert [o.key for o in listing.objects] == ["logs/a.txt", "logs/b.txt"]
        assert listing.is_truncated is False

    async def test_max_keys_truncates_and_signals(self, s3_gateway):
        for i in range(5):
            _seed(s3_gateway, f"item-{i}")
        listing = await s3_gateway.list_objects(BUCKET, max_keys=2)
        assert listing.count == 2
        assert len(listing.objects) == 2
        assert listing.is_truncated is True

    async def test_empty_bucket(self, s3_gateway):
        listing = await s3_gateway.list_objects(BUCKET)
        assert listing.count == 0
        assert listing.objects == []

    async def test_missing_bucket_raises(self, s3_gateway):
        with pytest.raises(ClientError) as excinfo:
            await s3_gateway.list_objects("no-such-bucket")
        assert excinfo.value.response["Error"]["Code"] == "NoSuchBucket"


class TestObjects:
    async def test_put_then_head(self, s3_gateway):
        await s3_gateway.put_object(BUCKET, "docs/hello.txt", io.BytesIO(b"Hello"), content_type="text/plain")
        metadata = await s3_gateway.head_object(BUCKET, "docs/hello.txt")
        assert metadata.size == 5
        assert metadata.content_type == "text/plain"
        assert metadata.etag
        assert metadata.last_modified is not None

    async def test_head_returns_user_metadata(self, s3_gateway):
        _seed(s3_gateway, "tagged.bin", Metadata={"owner": "ops"})
        metadata = await s3_gateway.head_object(BUCKET, "tagged.bin")
        assert metadata.metadata == {"owner": "ops"}

    async def test_get_streams_into_sink(self, s3_gateway):
        _seed(s3_gateway, "data.bin", b"\x00\x01\x02")
        sink = io.BytesIO()
        written = await s3_gateway.get_object(BUCKET, "data.bin", sink)
        assert written == 3
        assert sink.getvalue() == b"\x00\x01\x02"

    async def test_large_upload_round_trips_through_multipart(self, s3_gateway):
        payload = b"a" * (9 * 1024 * 1024)
        await s3_gateway.put_object(BUCKET, "big.bin", io.BytesIO(payload))
        sink = io.BytesIO()
        assert await s3_gateway.get_object(BUCKET, "big.bin", sink) == len(payload)
        assert sink.getvalue() == payload

    async def test_get_missing_key_raises_no_such_key(self, s3_gateway):
        with pytest.raises(ClientError) as excinfo:
            await s3_gateway.get_object(BUCKET, "missing.txt", io.BytesIO())
        assert excinfo.value.response["Error"]["Code"] == "NoSuchKey"

    async def test_head_missing_key_raises(self, s3_gateway):
        with pytest.raises(ClientError):
            await s3_gateway.head_object(BUCKET, "missing.txt")

    async def test_delete_object(self, s3_gateway):
        _seed(s3_gateway, "gone.txt")
        await s3_gateway.delete_object(BUCKET, "gone.txt")
        listing = await s3_gateway.list_objects(BUCKET)
        assert listing.count == 0


class TestPresign:
    async def test_get_url_defaults(self, s3_gateway):
        presigned = await s3_gateway.presign(BUCKET, "report.pdf")
        assert presigned.operation == "get"
        assert presigned.expires_in == 3600
        assert BUCKET in presigned.url
        assert "report.pdf" in urlparse(presigned.url).path

    async def test_presign_does_not_require_existing_key(self, s3_gateway):
        presigned = await s3_gateway.presign(BUCKET, "not-uploaded-yet.txt", expires_in=60)
        assert presigned.expires_in == 60
        assert parse_qs(urlparse(presigned.url).query)

    async def test_put_url_differs_from_get_url(self, s3_gateway):
        get_url = await s3_gateway.presign(BUCKET, "upload.txt", operation="get")
        put_url = await s3_gateway.presign(BUCKET, "upload.txt", operation="put", content_type="text/plain")
        assert put_url.operation == "put"
        assert put_url.url != get_url.url
