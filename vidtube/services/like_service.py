"""Like toggling over videos, comments and tweets, and the liked-videos list."""
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import NotFoundError
from vidtube.db.session import insert_ignoring_conflicts
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like, LikeKind
from vidtube.models.tweet import Tweet
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.schemas.engagement import LikeStatus
from vidtube.schemas.video import LikedVideo
from vidtube.services.pagination import paginate
from vidtube.services.projections import likes_count
from vidtube.services.video_service import video_to_summary

TARGET_MODELS = {
    LikeKind.VIDEO: Video,
    LikeKind.COMMENT: Comment,
    LikeKind.TWEET: Tweet,
}


async def toggle_like(db: AsyncSession, kind: LikeKind, target_id: UUID, actor_id: UUID) -> LikeStatus:
    """Remove the actor's like if there is one, otherwise add it.

    The delete runs first so the common "already liked" path needs no lookup;
    the target is only checked when a like is about to be created. Two racing
    likes collapse into one through the unique (liked_by, kind, target_id).
    """
    result = await db.execute(
        delete(Like).where(Like.kind == kind, Like.target_id == target_id, Like.liked_by == actor_id),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount:
        liked = False
    else:
        if await db.get(TARGET_MODELS[kind], target_id) is None:
            raise NotFoundError(f"{kind.value.capitalize()} not found")
        await db.execute(
            insert_ignoring_conflicts(db, Like)
            .values(kind=kind, target_id=target_id, liked_by=actor_id)
            .on_conflict_do_nothing()
        )
        liked = True
    count = await db.scalar(select(likes_count(kind, target_id)))
    return LikeStatus(liked=liked, likes_count=count or 0)


async def list_liked_videos(
    db: AsyncSession,
    actor_id: UUID,
    *,
    page: int,
    limit: int,
) -> tuple[list[LikedVideo], int]:
    stmt = (
        select(Like.created_at, Video, User, likes_count(LikeKind.VIDEO, Video.id).label("likes_count"))
        .join(Video, Video.id == Like.target_id)
        .join(User, User.id == Video.owner_id)
        .where(
            Like.kind == LikeKind.VIDEO,
            Like.liked_by == actor_id,
            Video.is_published.is_(True),
        )
        .order_by(Like.created_at.desc(), Like.id)
    )
    rows, total = await paginate(db, stmt, page=page, limit=limit)
    items = [
        LikedVideo(liked_at=liked_at, is_liked=True, video=video_to_summary(video, owner, count))
        for liked_at, video, owner, count in rows
    ]
    return items, total
