"""Pydantic schemas for Tweet."""
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from vidtube.schemas.common import CamelModel
from vidtube.schemas.user import OwnerPublic


class TweetCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=500)

    @field_validator("content")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Content is required")
        return v


class TweetUpdate(TweetCreate):
    pass


class TweetResponse(CamelModel):
    id: UUID
    content: str
    owner_id: UUID
    owner: OwnerPublic | None = None
    likes_count: int = 0
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime | None = None
