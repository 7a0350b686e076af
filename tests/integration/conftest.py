"""Integration test fixtures: the real boto3 gateway against LocalStack S3."""

from __future__ import annotations

import os
import uuid

import boto3
import pytest

from wasabi_mcp.persistence.s3_gateway import S3StorageGateway

# Default LocalStack endpoint
LOCALSTACK_URL = os.environ.get("LOCALSTACK_URL", "http://localhost:4566")
REGION = "us-east-1"


def _localstack_available() -> bool:
    """Check if LocalStack is reachable."""
    try:
        client = boto3.client(
            "s3",
            region_name=REGION,
            endpoint_url=LOCALSTACK_URL,
            aws_access_key_id="test",
            aws_secret_access_key="test",
        )
        client.list_buckets()
        return True
    except Exception:
        return False


skip_no_localstack = pytest.mark.skipif(
    not _localstack_available(),
    reason="LocalStack not available",
)


@pytest.fixture
def localstack_gateway():
    """S3StorageGateway pointing at LocalStack."""
    return S3StorageGateway(
        access_key_id="test",
        secret_access_key="test",
        region=REGION,
        endpoint_url=LOCALSTACK_URL,
    )


@pytest.fixture
def scratch_bucket(localstack_gateway):
    """A uniquely named bucket, emptied and removed after the test."""
    name = f"wasabi-mcp-inttest-{uuid.uuid4().hex[:12]}"
    client = localstack_gateway.client
    client.create_bucket(Bucket=name)
    yield name
    for page in client.get_paginator("list_objects_v2").paginate(Bucket=name):
        for item in page.get("Contents", []):
            client.delete_object(Bucket=name, Key=item["Key"])
    client.delete_bucket(Bucket=name)
