"""Storage payload models returned by the gateway.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PresignOperation = Literal["get", "put"]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class BucketSummary(WireModel):
    name: str
    creation_date: Optional[datetime] = None


class BucketLocation(WireModel):
    bucket: str
    location: str


class ObjectSummary(WireModel):
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


class ObjectListing(WireModel):
    bucket: str
    count: int
    is_truncated: bool = False
    objects: list[ObjectSummary] = Field(default_factory=list)


class ObjectMetadata(WireModel):
    """Metadata of a single object. Always fetched fresh from the backend."""

    bucket: str
    key: str
    size: int
    content_type: Optional[str] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)


class PresignedUrl(WireModel):
    bucket: str
    key: str
    url: str
    operation: PresignOperation
    expires_in: int
