"""Playlist endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_db
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, ok
from vidtube.schemas.playlist import PlaylistCreate, PlaylistDetail, PlaylistResponse, PlaylistSummary, PlaylistUpdate
from vidtube.services import playlist_service

router = APIRouter(prefix="/playlist", tags=["playlist"])


@router.post("", response_model=ApiResponse[PlaylistResponse], status_code=status.HTTP_201_CREATED)
async def create_playlist(
    data: PlaylistCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    playlist = await playlist_service.create_playlist(db, current_user.id, data.name, data.description)
    await db.commit()
    response = await playlist_service.playlist_to_response(db, playlist)
    return ok(response, "Playlist created successfully", status.HTTP_201_CREATED)


@router.get("/user/{user_id}", response_model=ApiResponse[list[PlaylistSummary]])
async def user_playlists(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    playlists = await playlist_service.list_user_playlists(db, user_id)
    return ok(playlists, "User playlists fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}", response_model=ApiResponse[PlaylistResponse])
async def add_video(
    video_id: UUID,
    playlist_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    playlist = await playlist_service.add_video(db, playlist_id, video_id, current_user.id)
    await db.commit()
    response = await playlist_service.playlist_to_response(db, playlist)
    return ok(response, "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}", response_model=ApiResponse[PlaylistResponse])
async def remove_video(
    video_id: UUID,
    playlist_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    playlist = await playlist_service.remove_video(db, playlist_id, video_id, current_user.id)
    await db.commit()
    response = await playlist_service.playlist_to_response(db, playlist)
    return ok(response, "Video removed from playlist successfully")


@router.get("/{playlist_id}", response_model=ApiResponse[PlaylistDetail])
async def get_playlist(
    playlist_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    detail = await playlist_service.get_playlist_detail(db, playlist_id)
    return ok(detail, "Playlist fetched successfully")


@router.patch("/{playlist_id}", response_model=ApiResponse[PlaylistResponse])
async def update_playlist(
    playlist_id: UUID,
    data: PlaylistUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    playlist = await playlist_service.update_playlist(
        db, playlist_id, current_user.id, name=data.name, description=data.description
    )
    await db.commit()
    response = await playlist_service.playlist_to_response(db, playlist)
    return ok(response, "Playlist updated successfully")


@router.delete("/{playlist_id}", response_model=ApiResponse[dict])
async def delete_playlist(
    playlist_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await playlist_service.delete_playlist(db, playlist_id, current_user.id)
    await db.commit()
    return ok({"playlistId": str(playlist_id)}, "Playlist deleted successfully")
