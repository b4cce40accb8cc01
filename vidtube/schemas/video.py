"""Pydantic schemas for Video and the read-models composed from it."""
import datetime as dt
from uuid import UUID

from pydantic import Field

from vidtube.schemas.common import CamelModel
from vidtube.schemas.user import OwnerPublic


class VideoResponse(CamelModel):
    """A video as stored, returned to its owner after writes."""

    id: UUID
    owner_id: UUID
    video_file: str
    thumbnail: str
    title: str
    description: str
    category: str
    tags: list[str] = []
    duration: float = 0
    views: int = 0
    is_published: bool = False
    created_at: dt.datetime
    updated_at: dt.datetime | None = None


class VideoSummary(CamelModel):
    """Card shown in feeds, playlists, watch history and search results."""

    id: UUID
    thumbnail: str
    title: str
    description: str | None = None
    duration: float = 0
    views: int = 0
    category: str | None = None
    tags: list[str] = []
    created_at: dt.datetime
    owner: OwnerPublic | None = None
    likes_count: int | None = None


class VideoDetail(CamelModel):
    id: UUID
    video_file: str
    thumbnail: str
    title: str
    description: str
    category: str
    tags: list[str] = []
    duration: float = 0
    views: int = 0
    owner: OwnerPublic
    likes_count: int = 0
    is_liked: bool = False
    created_at: dt.datetime
    updated_at: dt.datetime | None = None


class LikedVideo(CamelModel):
    liked_at: dt.datetime
    is_liked: bool = True
    video: VideoSummary


class PublishStatus(CamelModel):
    is_published: bool


class DeletedVideo(CamelModel):
    deleted_count: int
    comments_deleted: int = 0
    likes_deleted: int = 0


class WatchHistoryDay(CamelModel):
    date: dt.date
    videos: list[VideoSummary] = Field(default_factory=list)
