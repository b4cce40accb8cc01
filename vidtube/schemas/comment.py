"""Pydantic schemas for Comment."""
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from vidtube.schemas.common import CamelModel
from vidtube.schemas.user import OwnerPublic


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Content is required")
        return v


class CommentUpdate(CommentCreate):
    pass


class CommentResponse(CamelModel):
    content: str
    id: UUID
    video_id: UUID
    parent_id: UUID | None = None
    owner: OwnerPublic | None = None
    is_pinned: bool = False
    is_edited: bool = False
    likes_count: int = 0
    is_liked: bool = False
    replies_count: int | None = None
    created_at: datetime
    updated_at: datetime | None = None


class PinStatus(CamelModel):
    comment_id: UUID
    is_pinned: bool
    unpinned_comment_id: UUID | None = None


class DeletedComment(CamelModel):
    comment_id: UUID
    deleted_comments: int
    deleted_likes: int = 0
