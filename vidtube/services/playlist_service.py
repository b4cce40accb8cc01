"""Playlist business logic."""
import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vidtube.core.config import settings
from vidtube.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from vidtube.db.session import insert_ignoring_conflicts
from vidtube.models.playlist import Playlist, PlaylistVideo
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.schemas.playlist import PlaylistDetail, PlaylistResponse, PlaylistSummary
from vidtube.services.projections import owner_public
from vidtube.services.video_service import video_to_summary

logger = logging.getLogger(__name__)


async def _video_ids(db: AsyncSession, playlist_id: UUID) -> list[UUID]:
    result = await db.scalars(
        select(PlaylistVideo.video_id)
        .where(PlaylistVideo.playlist_id == playlist_id)
        .order_by(PlaylistVideo.position)
    )
    return list(result.all())


async def playlist_to_response(db: AsyncSession, playlist: Playlist) -> PlaylistResponse:
    return PlaylistResponse(
        id=playlist.id,
        name=playlist.name,
        description=playlist.description,
        owner_id=playlist.owner_id,
        video_ids=await _video_ids(db, playlist.id),
        created_at=playlist.created_at,
        updated_at=playlist.updated_at,
    )


async def _get_playlist(db: AsyncSession, playlist_id: UUID) -> Playlist:
    playlist = await db.get(Playlist, playlist_id)
    if not playlist:
        raise NotFoundError("Playlist not found")
    return playlist


async def _get_owned_playlist(db: AsyncSession, playlist_id: UUID, actor_id: UUID) -> Playlist:
    playlist = await _get_playlist(db, playlist_id)
    if playlist.owner_id != actor_id:
        raise ForbiddenError("You are not the owner of this playlist")
    return playlist


async def create_playlist(db: AsyncSession, owner_id: UUID, name: str, description: str) -> Playlist:
    name, description = name.strip(), description.strip()
    if not name or not description:
        raise BadRequestError("Name and description are required")
    playlist = Playlist(owner_id=owner_id, name=name, description=description)
    db.add(playlist)
    await db.flush()
    return playlist


async def list_user_playlists(db: AsyncSession, user_id: UUID) -> list[PlaylistSummary]:
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")
    result = await db.scalars(
        select(Playlist)
        .where(Playlist.owner_id == user_id)
        .options(selectinload(Playlist.entries))
        .order_by(Playlist.created_at.desc())
    )
    playlists = list(result.all())

    first_ids = [p.entries[0].video_id for p in playlists if p.entries]
    thumbnails: dict[UUID, str] = {}
    if first_ids:
        rows = await db.execute(select(Video.id, Video.thumbnail_url).where(Video.id.in_(first_ids)))
        thumbnails = {vid: thumb for vid, thumb in rows.all()}

    return [
        PlaylistSummary(
            id=p.id,
            name=p.name,
            description=p.description,
            owner_id=p.owner_id,
            video_ids=[e.video_id for e in p.entries],
            total_videos=len(p.entries),
            thumbnail=thumbnails.get(p.entries[0].video_id) if p.entries else None,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )
        for p in playlists
    ]


async def get_playlist_detail(db: AsyncSession, playlist_id: UUID) -> PlaylistDetail:
    """Playlist with every contained video resolved in order.

    Entries whose video no longer exists drop out of the join, so
    ``total_videos`` matches the membership reported by the playlist list.
    """
    playlist = await _get_playlist(db, playlist_id)
    owner = await db.get(User, playlist.owner_id)
    rows = await db.execute(
        select(Video, User)
        .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
        .join(User, User.id == Video.owner_id)
        .where(PlaylistVideo.playlist_id == playlist_id)
        .order_by(PlaylistVideo.position)
    )
    videos = [video_to_summary(video, video_owner) for video, video_owner in rows.all()]
    return PlaylistDetail(
        id=playlist.id,
        name=playlist.name,
        description=playlist.description,
        owner=owner_public(owner) if owner else None,
        videos=videos,
        total_videos=len(videos),
        created_at=playlist.created_at,
        updated_at=playlist.updated_at,
    )


async def update_playlist(
    db: AsyncSession,
    playlist_id: UUID,
    actor_id: UUID,
    name: str | None = None,
    description: str | None = None,
) -> Playlist:
    name = name.strip() if name else None
    description = description.strip() if description else None
    if not name and not description:
        raise BadRequestError("Name or description is required")
    playlist = await _get_owned_playlist(db, playlist_id, actor_id)
    if name:
        playlist.name = name
    if description:
        playlist.description = description
    await db.flush()
    return playlist


async def delete_playlist(db: AsyncSession, playlist_id: UUID, actor_id: UUID) -> None:
    playlist = await _get_owned_playlist(db, playlist_id, actor_id)
    await db.delete(playlist)
    await db.flush()


async def add_video(db: AsyncSession, playlist_id: UUID, video_id: UUID, actor_id: UUID) -> Playlist:
    playlist = await _get_playlist(db, playlist_id)
    if playlist.owner_id != actor_id:
        if settings.PLAYLIST_ADD_REQUIRES_OWNER:
            raise ForbiddenError("You are not the owner of this playlist")
        logger.warning("User %s added a video to playlist %s owned by %s", actor_id, playlist_id, playlist.owner_id)
    if await db.get(Video, video_id) is None:
        raise NotFoundError("Video not found")

    last = await db.scalar(
        select(func.coalesce(func.max(PlaylistVideo.position), -1)).where(PlaylistVideo.playlist_id == playlist_id)
    )
    result = await db.execute(
        insert_ignoring_conflicts(db, PlaylistVideo)
        .values(playlist_id=playlist_id, video_id=video_id, position=last + 1)
        .on_conflict_do_nothing()
    )
    if result.rowcount == 0:
        raise BadRequestError("Video is already in the playlist")
    return playlist


async def remove_video(db: AsyncSession, playlist_id: UUID, video_id: UUID, actor_id: UUID) -> Playlist:
    playlist = await _get_owned_playlist(db, playlist_id, actor_id)
    result = await db.execute(
        delete(PlaylistVideo).where(
            PlaylistVideo.playlist_id == playlist_id,
            PlaylistVideo.video_id == video_id,
        ),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount == 0:
        raise NotFoundError("Video is not in the playlist")
    return playlist
