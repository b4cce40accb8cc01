"""Channel dashboard: aggregate stats and the owner's own video list."""
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import NotFoundError
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like, LikeKind
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.schemas.engagement import ChannelStats, DashboardVideo
from vidtube.services.projections import likes_count, subscribers_count


async def get_channel_stats(db: AsyncSession, channel_id: UUID, published_only: bool = False) -> ChannelStats:
    if await db.get(User, channel_id) is None:
        raise NotFoundError("Channel not found")

    scope = [Video.owner_id == channel_id]
    if published_only:
        scope.append(Video.is_published.is_(True))
    videos = select(Video.id).where(*scope)

    total_videos, total_views = (
        await db.execute(select(func.count(Video.id), func.coalesce(func.sum(Video.views), 0)).where(*scope))
    ).one()
    total_likes = await db.scalar(
        select(func.count(Like.id)).where(Like.kind == LikeKind.VIDEO, Like.target_id.in_(videos))
    )
    total_subscribers = await db.scalar(select(subscribers_count(channel_id)))
    return ChannelStats(
        channel_id=channel_id,
        total_videos=total_videos or 0,
        total_views=total_views or 0,
        total_likes=total_likes or 0,
        total_subscribers=total_subscribers or 0,
    )


async def get_channel_videos(db: AsyncSession, owner_id: UUID) -> list[DashboardVideo]:
    """Every video of the owner, published or not, newest first."""
    comments = select(func.count(Comment.id)).where(Comment.video_id == Video.id).scalar_subquery()
    rows = await db.execute(
        select(
            Video,
            likes_count(LikeKind.VIDEO, Video.id).label("likes_count"),
            comments.label("comments_count"),
        )
        .where(Video.owner_id == owner_id)
        .order_by(Video.created_at.desc(), Video.id)
    )
    return [
        DashboardVideo(
            id=video.id,
            thumbnail=video.thumbnail_url,
            title=video.title,
            description=video.description,
            views=video.views or 0,
            duration=video.duration or 0,
            is_published=video.is_published,
            likes_count=likes or 0,
            comments_count=comment_count or 0,
            created_at=video.created_at,
        )
        for video, likes, comment_count in rows.all()
    ]
