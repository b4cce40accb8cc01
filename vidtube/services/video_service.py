"""Video business logic: feed compositions, detail with view counting, publish/update/delete."""
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import (
    ApiError,
    BadRequestError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
)
from vidtube.db.session import insert_ignoring_conflicts
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like, LikeKind
from vidtube.models.playlist import PlaylistVideo
from vidtube.models.user import User, WatchHistoryEntry
from vidtube.models.video import MAX_TAGS, TRENDING, Video, VideoCategory, VideoTag, normalize_tags
from vidtube.schemas.video import DeletedVideo, VideoDetail, VideoResponse, VideoSummary
from vidtube.services.pagination import paginate, resolve_sort
from vidtube.services.projections import (
    is_liked,
    is_subscribed,
    likes_count,
    owner_public,
    subscribers_count,
)
from vidtube.services.storage_service import StorageBackend, release_blob, remove_temp_file

logger = logging.getLogger(__name__)

CATEGORIES = {c.value for c in VideoCategory}

# Bulk DML below does not need in-session objects kept in step
NO_SYNC = {"synchronize_session": False}


def video_to_response(video: Video) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        owner_id=video.owner_id,
        video_file=video.video_url,
        thumbnail=video.thumbnail_url,
        title=video.title,
        description=video.description,
        category=video.category,
        tags=video.tags,
        duration=video.duration or 0,
        views=video.views or 0,
        is_published=video.is_published,
        created_at=video.created_at,
        updated_at=video.updated_at,
    )


def video_to_summary(video: Video, owner: User | None = None, likes: int | None = None) -> VideoSummary:
    return VideoSummary(
        id=video.id,
        thumbnail=video.thumbnail_url,
        title=video.title,
        description=video.description,
        duration=video.duration or 0,
        views=video.views or 0,
        category=video.category,
        tags=video.tags,
        created_at=video.created_at,
        owner=owner_public(owner) if owner is not None else None,
        likes_count=likes,
    )


def validate_category(category: str) -> str:
    if category not in CATEGORIES:
        raise BadRequestError(f"Invalid category '{category}'", errors=[{"field": "category", "allowed": sorted(CATEGORIES)}])
    return category


def validate_tags(tags: list[str]) -> list[str]:
    tags = normalize_tags(tags)
    if len(tags) > MAX_TAGS:
        raise BadRequestError(f"A video can have at most {MAX_TAGS} tags")
    return tags


def tagged_video_ids(tags: list[str]):
    return select(VideoTag.video_id).where(VideoTag.tag.in_([t.lower() for t in tags]))


def _summary_select():
    likes = likes_count(LikeKind.VIDEO, Video.id).label("likes_count")
    stmt = (
        select(Video, User, likes)
        .join(User, User.id == Video.owner_id)
        .where(Video.is_published.is_(True))
    )
    return stmt, likes


async def list_videos(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    query: str | None = None,
    sort_by: str = "createdAt",
    sort_type: str = "desc",
    user_id: UUID | None = None,
    category: str | None = None,
    tag: str | None = None,
) -> tuple[list[VideoSummary], int]:
    stmt, likes = _summary_select()
    sort = resolve_sort(
        sort_by,
        sort_type,
        {"createdAt": Video.created_at, "views": Video.views, "title": Video.title, "likes": likes},
    )
    if user_id:
        stmt = stmt.where(Video.owner_id == user_id)
    if query:
        pattern = f"%{query.strip()}%"
        stmt = stmt.where(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))
    if tag:
        stmt = stmt.where(Video.id.in_(tagged_video_ids([tag.strip()])))
    if category == TRENDING:
        stmt = stmt.order_by(Video.views.desc(), Video.created_at.desc())
    else:
        if category:
            stmt = stmt.where(Video.category == validate_category(category))
        stmt = stmt.order_by(sort, Video.id)

    rows, total = await paginate(db, stmt, page=page, limit=limit)
    return [video_to_summary(v, owner, count) for v, owner, count in rows], total


async def list_videos_by_tag(db: AsyncSession, tag: str, *, page: int, limit: int) -> tuple[list[VideoSummary], int]:
    tag = tag.strip().lower()
    if not tag:
        raise BadRequestError("Tag is required")
    stmt, _ = _summary_select()
    stmt = stmt.where(Video.id.in_(tagged_video_ids([tag]))).order_by(Video.views.desc(), Video.created_at.desc())
    rows, total = await paginate(db, stmt, page=page, limit=limit)
    return [video_to_summary(v, owner, count) for v, owner, count in rows], total


async def get_video_detail(db: AsyncSession, video_id: UUID, actor_id: UUID | None) -> VideoDetail:
    """Count a view, compose the detail and file the video in the viewer's watch history."""
    result = await db.execute(
        update(Video)
        .where(Video.id == video_id, Video.is_published.is_(True))
        .values(views=Video.views + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Video either does not exist or is unpublished")

    stmt = (
        select(
            Video,
            User,
            likes_count(LikeKind.VIDEO, Video.id).label("likes_count"),
            is_liked(LikeKind.VIDEO, Video.id, actor_id).label("is_liked"),
            subscribers_count(User.id).label("subscribers_count"),
            is_subscribed(User.id, actor_id).label("is_subscribed"),
        )
        .join(User, User.id == Video.owner_id)
        .where(Video.id == video_id)
        .execution_options(populate_existing=True)
    )
    video, owner, likes, liked, subscribers, subscribed = (await db.execute(stmt)).one()

    if actor_id is not None:
        await record_watch(db, actor_id, video_id)

    return VideoDetail(
        id=video.id,
        video_file=video.video_url,
        thumbnail=video.thumbnail_url,
        title=video.title,
        description=video.description,
        category=video.category,
        tags=video.tags,
        duration=video.duration or 0,
        views=video.views,
        owner=owner_public(owner, subscribers=subscribers, subscribed=subscribed),
        likes_count=likes,
        is_liked=bool(liked),
        created_at=video.created_at,
        updated_at=video.updated_at,
    )


async def record_watch(db: AsyncSession, user_id: UUID, video_id: UUID) -> bool:
    """Add the video to today's bucket. Returns False when it was already there."""
    today = datetime.now(timezone.utc).date()
    stmt = (
        insert_ignoring_conflicts(db, WatchHistoryEntry)
        .values(user_id=user_id, video_id=video_id, watched_on=today)
        .on_conflict_do_nothing()
    )
    result = await db.execute(stmt)
    return result.rowcount > 0


async def get_related_videos(db: AsyncSession, video_id: UUID, limit: int = 10) -> list[VideoSummary]:
    ref = await db.get(Video, video_id)
    if not ref:
        raise NotFoundError("Video not found")
    stmt, _ = _summary_select()
    match = Video.category == ref.category
    if ref.tags:
        match = or_(match, Video.id.in_(tagged_video_ids(ref.tags)))
    stmt = (
        stmt.where(Video.id != ref.id, match)
        .order_by(Video.views.desc(), Video.created_at.desc())
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    return [video_to_summary(v, owner, count) for v, owner, count in rows]


async def get_owned_video(db: AsyncSession, video_id: UUID, actor_id: UUID) -> Video:
    video = await db.get(Video, video_id)
    if not video:
        raise NotFoundError("Video not found")
    if video.owner_id != actor_id:
        raise ForbiddenError("You are not the owner of this video")
    return video


async def publish_video(
    db: AsyncSession,
    storage: StorageBackend,
    owner_id: UUID,
    *,
    title: str,
    description: str,
    category: str,
    tags: list[str],
    video_path: Path,
    thumbnail_path: Path,
) -> Video:
    try:
        if not title.strip() or not description.strip():
            raise BadRequestError("Title and description are required")
        category = validate_category(category)
        tags = validate_tags(tags)
    except ApiError:
        remove_temp_file(video_path)
        remove_temp_file(thumbnail_path)
        raise

    video_file = await storage.upload(video_path, "video")
    if video_file is None:
        remove_temp_file(thumbnail_path)
        raise InternalServerError("Failed to upload video")
    thumbnail = await storage.upload(thumbnail_path, "image")
    if thumbnail is None:
        await release_blob(storage, video_file.public_id, "video")
        raise InternalServerError("Failed to upload thumbnail")

    video = Video(
        owner_id=owner_id,
        video_url=video_file.secure_url,
        video_public_id=video_file.public_id,
        thumbnail_url=thumbnail.secure_url,
        thumbnail_public_id=thumbnail.public_id,
        title=title.strip(),
        description=description.strip(),
        category=category,
        duration=video_file.duration or 0,
        views=0,
        is_published=False,
    )
    video.set_tags(tags)
    db.add(video)
    await db.flush()
    logger.info("Video %s published by %s", video.id, owner_id)
    return video


async def update_video(
    db: AsyncSession,
    storage: StorageBackend,
    video_id: UUID,
    actor_id: UUID,
    *,
    title: str | None = None,
    description: str | None = None,
    category: str | None = None,
    tags: list[str] | None = None,
    thumbnail_path: Path | None = None,
) -> Video:
    try:
        if not any(v is not None for v in (title, description, category, tags, thumbnail_path)):
            raise BadRequestError("At least one field is required to update the video")
        video = await get_owned_video(db, video_id, actor_id)
        if category is not None:
            category = validate_category(category)
        if tags is not None:
            tags = validate_tags(tags)
    except ApiError:
        remove_temp_file(thumbnail_path)
        raise

    old_thumbnail = None
    if thumbnail_path is not None:
        thumbnail = await storage.upload(thumbnail_path, "image")
        if thumbnail is None:
            raise InternalServerError("Failed to upload thumbnail")
        old_thumbnail = video.thumbnail_public_id
        video.thumbnail_url = thumbnail.secure_url
        video.thumbnail_public_id = thumbnail.public_id

    if title is not None and title.strip():
        video.title = title.strip()
    if description is not None and description.strip():
        video.description = description.strip()
    if category is not None:
        video.category = category
    if tags is not None:
        # Old rows must be gone before the new ones are inserted
        video.tag_rows = []
        await db.flush()
        video.set_tags(tags)
    await db.flush()

    await release_blob(storage, old_thumbnail, "image")
    return video


async def toggle_publish(db: AsyncSession, video_id: UUID, actor_id: UUID) -> bool:
    video = await get_owned_video(db, video_id, actor_id)
    video.is_published = not video.is_published
    await db.flush()
    return video.is_published


async def delete_video_comments(db: AsyncSession, video_id: UUID) -> int:
    result = await db.execute(delete(Comment).where(Comment.video_id == video_id), execution_options=NO_SYNC)
    return result.rowcount


async def _delete_video_rows(db: AsyncSession, video: Video) -> DeletedVideo:
    try:
        comment_ids = list((await db.scalars(select(Comment.id).where(Comment.video_id == video.id))).all())
        likes_filter = or_(
            (Like.kind == LikeKind.VIDEO) & (Like.target_id == video.id),
            (Like.kind == LikeKind.COMMENT) & (Like.target_id.in_(comment_ids)),
        )
        likes_present = await db.scalar(select(func.count(Like.id)).where(likes_filter)) or 0

        likes_result = await db.execute(delete(Like).where(likes_filter), execution_options=NO_SYNC)
        comments_deleted = await delete_video_comments(db, video.id)
        await db.execute(delete(VideoTag).where(VideoTag.video_id == video.id), execution_options=NO_SYNC)
        await db.execute(delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id), execution_options=NO_SYNC)
        await db.execute(delete(WatchHistoryEntry).where(WatchHistoryEntry.video_id == video.id), execution_options=NO_SYNC)
        video_result = await db.execute(delete(Video).where(Video.id == video.id), execution_options=NO_SYNC)

        # Nothing to clean up is fine; rows present but none removed is not
        if comment_ids and comments_deleted == 0:
            raise InternalServerError("Failed to delete comments of the video")
        if likes_present and likes_result.rowcount == 0:
            raise InternalServerError("Failed to delete likes of the video")
        await db.commit()
    except ApiError:
        await db.rollback()
        raise
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Deleting video %s failed", video.id)
        raise InternalServerError("Failed to delete video")

    return DeletedVideo(
        deleted_count=video_result.rowcount,
        comments_deleted=comments_deleted,
        likes_deleted=likes_result.rowcount,
    )


async def delete_video(db: AsyncSession, storage: StorageBackend, video_id: UUID, actor_id: UUID) -> DeletedVideo:
    """Delete a video with its comments and likes and release both blobs.

    Rows go in one transaction on the request session while the blob deletes
    run alongside; each outcome is checked once everything has settled. Blob
    failures are logged only.
    """
    video = await get_owned_video(db, video_id, actor_id)
    video_public_id, thumbnail_public_id = video.video_public_id, video.thumbnail_public_id
    db_result, video_blob, thumbnail_blob = await asyncio.gather(
        _delete_video_rows(db, video),
        storage.delete(video_public_id, "video"),
        storage.delete(thumbnail_public_id, "image"),
        return_exceptions=True,
    )
    for public_id, outcome in ((video_public_id, video_blob), (thumbnail_public_id, thumbnail_blob)):
        if isinstance(outcome, Exception) or outcome.get("result") != "ok":
            logger.warning("Blob %s of deleted video %s was not released: %r", public_id, video_id, outcome)
    if isinstance(db_result, BaseException):
        raise db_result
    return db_result
