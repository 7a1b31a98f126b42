from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel

MediaType = Literal["logo", "photo"]


class MediaUploadRequest(CamelModel):
    filename: str = Field(min_length=1, max_length=255)
    mimetype: str = Field(min_length=1)
    file_size: int = Field(gt=0)
    type: MediaType = "photo"
    description: str | None = Field(default=None, max_length=500)


class MediaProcessRequest(CamelModel):
    media_id: UUID
    type: MediaType
    description: str | None = Field(default=None, max_length=500)


class MediaItem(CamelModel):
    id: str
    business_id: str | None = None
    type: MediaType
    original_url: str | None = None
    thumbnail_url: str | None = None
    small_url: str | None = None
    medium_url: str | None = None
    large_url: str | None = None
    logo_url: str | None = None
    description: str | None = None
    order: int = 0
    file_size: int | None = None
    mimetype: str | None = None
    created_at: str | None = None


class MediaReplaceRequest(CamelModel):
    media: list[MediaItem]
