"""Storage backends behind the IStorageGateway protocol."""

from __future__ import annotations

from wasabi_mcp.core.config import AppSettings, load_settings
from wasabi_mcp.persistence.local_files import LocalFileSystem
from wasabi_mcp.persistence.s3_gateway import S3StorageGateway


def create_gateway(settings: AppSettings | None = None) -> S3StorageGateway:
    """Create the storage gateway from application settings."""
    if settings is None:
        settings = load_settings()

    storage = settings.storage
    return S3StorageGateway(
        access_key_id=storage.access_key_id,
        secret_access_key=storage.secret_access_key,
        region=storage.region,
        endpoint_url=storage.endpoint_url,
    )


__all__ = ["LocalFileSystem", "S3StorageGateway", "create_gateway"]
