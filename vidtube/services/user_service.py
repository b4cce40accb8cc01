"""User profile, channel and watch-history logic."""
import logging
from pathlib import Path
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import BadRequestError, ConflictError, InternalServerError, NotFoundError
from vidtube.models.user import User, WatchHistoryEntry
from vidtube.models.video import Video
from vidtube.schemas.user import ChannelProfile, OwnerPublic
from vidtube.schemas.video import WatchHistoryDay
from vidtube.services import search_history_service
from vidtube.services.pagination import paginate
from vidtube.services.projections import is_subscribed, owner_public, subscribers_count, subscriptions_count
from vidtube.services.storage_service import StorageBackend, release_blob
from vidtube.services.video_service import video_to_summary

logger = logging.getLogger(__name__)


async def get_channel_profile(db: AsyncSession, user_id: UUID, actor_id: UUID | None) -> ChannelProfile:
    row = (
        await db.execute(
            select(
                User,
                subscribers_count(User.id).label("subscribers_count"),
                subscriptions_count(User.id).label("channels_subscribed_to_count"),
                is_subscribed(User.id, actor_id).label("is_subscribed"),
            ).where(User.id == user_id)
        )
    ).one_or_none()
    if row is None:
        raise NotFoundError("Channel does not exist")
    user, subscribers, subscriptions, subscribed = row
    return ChannelProfile(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar=user.avatar_url,
        cover_image=user.cover_image_url,
        email=user.email,
        subscribers_count=subscribers or 0,
        channels_subscribed_to_count=subscriptions or 0,
        is_subscribed=bool(subscribed),
        created_at=user.created_at,
    )


async def get_watch_history(
    db: AsyncSession,
    user_id: UUID,
    *,
    page: int,
    limit: int,
) -> tuple[list[WatchHistoryDay], int]:
    """Watch history in day buckets, newest day first; ``limit`` counts days."""
    days_stmt = (
        select(WatchHistoryEntry.watched_on)
        .where(WatchHistoryEntry.user_id == user_id)
        .group_by(WatchHistoryEntry.watched_on)
        .order_by(WatchHistoryEntry.watched_on.desc())
    )
    day_rows, total = await paginate(db, days_stmt, page=page, limit=limit)
    days = [row[0] for row in day_rows]
    if not days:
        return [], total

    rows = await db.execute(
        select(WatchHistoryEntry.watched_on, Video, User)
        .join(Video, Video.id == WatchHistoryEntry.video_id)
        .join(User, User.id == Video.owner_id)
        .where(WatchHistoryEntry.user_id == user_id, WatchHistoryEntry.watched_on.in_(days))
        .order_by(WatchHistoryEntry.watched_on.desc(), WatchHistoryEntry.created_at.desc())
    )
    buckets = {day: WatchHistoryDay(date=day) for day in days}
    for day, video, owner in rows.all():
        buckets[day].videos.append(video_to_summary(video, owner))
    return list(buckets.values()), total


async def clear_watch_history(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        delete(WatchHistoryEntry).where(WatchHistoryEntry.user_id == user_id),
        execution_options={"synchronize_session": False},
    )
    return result.rowcount


async def search_channels(
    db: AsyncSession,
    query: str,
    actor_id: UUID | None,
    *,
    page: int,
    limit: int,
) -> tuple[list[OwnerPublic], int]:
    query = (query or "").strip()
    if not query:
        raise BadRequestError("Search query is required")
    pattern = f"%{query}%"
    stmt = (
        select(
            User,
            subscribers_count(User.id).label("subscribers_count"),
            is_subscribed(User.id, actor_id).label("is_subscribed"),
        )
        .where(or_(User.username.ilike(pattern), User.full_name.ilike(pattern)))
        .order_by(User.username)
    )
    rows, total = await paginate(db, stmt, page=page, limit=limit)
    if actor_id is not None:
        await search_history_service.add_term(db, actor_id, query)
    return [owner_public(u, subscribers=count, subscribed=sub) for u, count, sub in rows], total


async def update_account(db: AsyncSession, user: User, full_name: str, email: str) -> User:
    email = email.strip().lower()
    taken = await db.scalar(select(User.id).where(User.email == email, User.id != user.id))
    if taken:
        raise ConflictError("Email is already in use")
    user.full_name = full_name.strip()
    user.email = email
    await db.flush()
    return user


async def update_avatar(db: AsyncSession, storage: StorageBackend, user: User, avatar_path: Path) -> User:
    avatar = await storage.upload(avatar_path, "image")
    if avatar is None:
        raise InternalServerError("Failed to upload avatar")
    old_public_id = user.avatar_public_id
    user.avatar_url = avatar.secure_url
    user.avatar_public_id = avatar.public_id
    await db.flush()
    await release_blob(storage, old_public_id, "image")
    return user


async def update_cover_image(db: AsyncSession, storage: StorageBackend, user: User, cover_path: Path) -> User:
    cover = await storage.upload(cover_path, "image")
    if cover is None:
        raise InternalServerError("Failed to upload cover image")
    old_public_id = user.cover_image_public_id
    user.cover_image_url = cover.secure_url
    user.cover_image_public_id = cover.public_id
    await db.flush()
    await release_blob(storage, old_public_id, "image")
    return user
