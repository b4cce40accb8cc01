"""Pydantic schemas for Playlist."""
from datetime import datetime
from uuid import UUID

from pydantic import Field

from vidtube.schemas.common import CamelModel
from vidtube.schemas.user import OwnerPublic
from vidtube.schemas.video import VideoSummary


class PlaylistCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class PlaylistUpdate(CamelModel):
    name: str | None = Field(None, max_length=255)
    description: str | None = None


class PlaylistResponse(CamelModel):
    id: UUID
    name: str
    description: str
    owner_id: UUID
    video_ids: list[UUID] = []
    created_at: datetime
    updated_at: datetime | None = None


class PlaylistSummary(PlaylistResponse):
    total_videos: int = 0
    thumbnail: str | None = None


class PlaylistDetail(CamelModel):
    id: UUID
    name: str
    description: str
    owner: OwnerPublic | None = None
    videos: list[VideoSummary] = []
    total_videos: int = 0
    created_at: datetime
    updated_at: datetime | None = None
