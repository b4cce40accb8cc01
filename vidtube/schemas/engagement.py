"""Schemas for likes, subscriptions and the channel dashboard."""
from datetime import datetime
from uuid import UUID

from vidtube.schemas.common import CamelModel
from vidtube.schemas.user import OwnerPublic


class LikeStatus(CamelModel):
    liked: bool
    likes_count: int


class SubscriptionStatus(CamelModel):
    subscribed: bool
    subscribers_count: int


class SubscribedChannel(CamelModel):
    subscribed_at: datetime
    channel: OwnerPublic


class Subscriber(CamelModel):
    subscribed_at: datetime
    subscriber: OwnerPublic


class ChannelStats(CamelModel):
    channel_id: UUID
    total_videos: int = 0
    total_views: int = 0
    total_likes: int = 0
    total_subscribers: int = 0


class DashboardVideo(CamelModel):
    id: UUID
    thumbnail: str
    title: str
    description: str
    views: int = 0
    duration: float = 0
    is_published: bool = False
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime
