"""Comment business logic: threaded listing, cascade delete and pinning."""
import logging
from uuid import UUID

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
)
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like, LikeKind
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.schemas.comment import CommentResponse, DeletedComment, PinStatus
from vidtube.services.pagination import paginate
from vidtube.services.projections import is_liked, likes_count, owner_public, replies_count

logger = logging.getLogger(__name__)

COMMENT_SORTS = ("newest", "oldest")
NO_SYNC = {"synchronize_session": False}


def comment_to_response(
    comment: Comment,
    owner: User | None,
    likes: int = 0,
    liked: bool = False,
    replies: int | None = None,
) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        video_id=comment.video_id,
        parent_id=comment.parent_id,
        owner=owner_public(owner) if owner is not None else None,
        is_pinned=comment.is_pinned,
        is_edited=comment.is_edited,
        likes_count=likes or 0,
        is_liked=bool(liked),
        replies_count=replies,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


async def _get_video(db: AsyncSession, video_id: UUID) -> Video:
    video = await db.get(Video, video_id)
    if not video:
        raise NotFoundError("Video not found")
    return video


async def _get_comment(db: AsyncSession, comment_id: UUID) -> Comment:
    comment = await db.get(Comment, comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


async def list_video_comments(
    db: AsyncSession,
    video_id: UUID,
    actor_id: UUID | None,
    *,
    page: int,
    limit: int,
    sort: str = "newest",
) -> tuple[list[CommentResponse], int]:
    """Top-level comments of a video. The pinned comment always comes first."""
    if sort not in COMMENT_SORTS:
        raise BadRequestError(f"Invalid sort '{sort}'. Allowed: {', '.join(COMMENT_SORTS)}")
    await _get_video(db, video_id)
    recency = Comment.created_at.desc() if sort == "newest" else Comment.created_at.asc()
    stmt = (
        select(
            Comment,
            User,
            likes_count(LikeKind.COMMENT, Comment.id).label("likes_count"),
            is_liked(LikeKind.COMMENT, Comment.id, actor_id).label("is_liked"),
            replies_count(Comment.id).label("replies_count"),
        )
        .join(User, User.id == Comment.owner_id)
        .where(Comment.video_id == video_id, Comment.parent_id.is_(None))
        .order_by(Comment.is_pinned.desc(), recency, Comment.id)
    )
    rows, total = await paginate(db, stmt, page=page, limit=limit)
    return [comment_to_response(c, owner, likes, liked, replies) for c, owner, likes, liked, replies in rows], total


async def list_replies(db: AsyncSession, comment_id: UUID, actor_id: UUID | None) -> list[CommentResponse]:
    """Replies to a comment, oldest first."""
    await _get_comment(db, comment_id)
    stmt = (
        select(
            Comment,
            User,
            likes_count(LikeKind.COMMENT, Comment.id).label("likes_count"),
            is_liked(LikeKind.COMMENT, Comment.id, actor_id).label("is_liked"),
        )
        .join(User, User.id == Comment.owner_id)
        .where(Comment.parent_id == comment_id)
        .order_by(Comment.created_at.asc(), Comment.id)
    )
    rows = (await db.execute(stmt)).all()
    return [comment_to_response(c, owner, likes, liked) for c, owner, likes, liked in rows]


async def add_comment(
    db: AsyncSession,
    video_id: UUID,
    actor: User,
    content: str,
    parent_id: UUID | None = None,
) -> CommentResponse:
    await _get_video(db, video_id)
    if parent_id is not None:
        parent = await db.get(Comment, parent_id)
        if not parent:
            raise NotFoundError("Parent comment not found")
        if parent.video_id != video_id:
            raise BadRequestError("Parent comment does not belong to this video")
        if parent.parent_id is not None:
            raise BadRequestError("Cannot reply to a reply")
    comment = Comment(video_id=video_id, owner_id=actor.id, parent_id=parent_id, content=content)
    db.add(comment)
    await db.flush()
    return comment_to_response(comment, actor, replies=None if parent_id else 0)


async def update_comment(db: AsyncSession, comment_id: UUID, actor: User, content: str) -> CommentResponse:
    comment = await _get_comment(db, comment_id)
    if comment.owner_id != actor.id:
        raise ForbiddenError("You can only edit your own comments")
    comment.content = content
    comment.is_edited = True
    await db.flush()
    likes = await db.scalar(select(likes_count(LikeKind.COMMENT, comment.id)))
    liked = await db.scalar(select(is_liked(LikeKind.COMMENT, comment.id, actor.id)))
    return comment_to_response(comment, actor, likes, liked)


async def delete_likes(db: AsyncSession, kind: LikeKind, target_ids: list[UUID]) -> int:
    if not target_ids:
        return 0
    result = await db.execute(
        delete(Like).where(Like.kind == kind, Like.target_id.in_(target_ids)),
        execution_options=NO_SYNC,
    )
    return result.rowcount


async def _cascade_delete(db: AsyncSession, comment_id: UUID) -> tuple[int, int]:
    likes = await delete_likes(db, LikeKind.COMMENT, [comment_id])
    reply_ids = list((await db.scalars(select(Comment.id).where(Comment.parent_id == comment_id))).all())
    likes += await delete_likes(db, LikeKind.COMMENT, reply_ids)
    comments = 0
    if reply_ids:
        result = await db.execute(delete(Comment).where(Comment.id.in_(reply_ids)), execution_options=NO_SYNC)
        comments += result.rowcount
    result = await db.execute(delete(Comment).where(Comment.id == comment_id), execution_options=NO_SYNC)
    comments += result.rowcount
    return comments, likes


async def delete_comment(db: AsyncSession, comment_id: UUID, actor_id: UUID) -> DeletedComment:
    """Delete a comment together with its replies and every like on them.

    A comment with no likes and no replies is deleted on its own. Otherwise the
    whole cascade runs in one transaction and either lands completely or not
    at all.
    """
    comment = await _get_comment(db, comment_id)
    if comment.owner_id != actor_id:
        raise ForbiddenError("You can only delete your own comments")

    has_likes, has_replies = (
        await db.execute(
            select(
                exists().where(Like.kind == LikeKind.COMMENT, Like.target_id == comment_id),
                exists().where(Comment.parent_id == comment_id),
            )
        )
    ).one()

    if not has_likes and not has_replies:
        await db.execute(delete(Comment).where(Comment.id == comment_id), execution_options=NO_SYNC)
        await db.commit()
        return DeletedComment(comment_id=comment_id, deleted_comments=1, deleted_likes=0)

    try:
        comments, likes = await _cascade_delete(db, comment_id)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Cascade delete of comment %s failed, nothing was removed", comment_id)
        raise InternalServerError("Failed to delete comment")
    logger.info("Comment %s deleted with %d comment(s) and %d like(s)", comment_id, comments, likes)
    return DeletedComment(comment_id=comment_id, deleted_comments=comments, deleted_likes=likes)


async def _pin_target(db: AsyncSession, comment_id: UUID, video_id: UUID, actor_id: UUID) -> Comment:
    video = await _get_video(db, video_id)
    comment = await _get_comment(db, comment_id)
    if comment.video_id != video_id:
        raise BadRequestError("Comment does not belong to this video")
    if video.owner_id != actor_id:
        raise ForbiddenError("Only the video owner can pin or unpin comments")
    if comment.parent_id is not None:
        raise BadRequestError("Replies cannot be pinned")
    return comment


async def _current_pinned(db: AsyncSession, video_id: UUID) -> Comment | None:
    return await db.scalar(select(Comment).where(Comment.video_id == video_id, Comment.is_pinned.is_(True)))


async def pin_comment(db: AsyncSession, comment_id: UUID, video_id: UUID, actor_id: UUID) -> PinStatus:
    comment = await _pin_target(db, comment_id, video_id, actor_id)
    if comment.is_pinned:
        raise BadRequestError("Comment is already pinned")

    current = await _current_pinned(db, video_id)
    try:
        if current is not None:
            # Unpin lands before the pin; the unique index rejects two pinned rows
            current.is_pinned = False
            await db.flush()
        comment.is_pinned = True
        await db.flush()
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Another comment was pinned on this video at the same time")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Pinning comment %s on video %s failed", comment_id, video_id)
        raise InternalServerError("Failed to pin comment")
    return PinStatus(
        comment_id=comment_id,
        is_pinned=True,
        unpinned_comment_id=current.id if current is not None else None,
    )


async def unpin_comment(db: AsyncSession, comment_id: UUID, video_id: UUID, actor_id: UUID) -> PinStatus:
    comment = await _pin_target(db, comment_id, video_id, actor_id)
    if not comment.is_pinned:
        raise BadRequestError("Comment is not pinned")
    comment.is_pinned = False
    await db.flush()
    await db.commit()
    return PinStatus(comment_id=comment_id, is_pinned=False)
