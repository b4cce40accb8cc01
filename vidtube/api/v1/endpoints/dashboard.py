"""Channel dashboard endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_db
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, ok
from vidtube.schemas.engagement import ChannelStats, DashboardVideo
from vidtube.services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats/{channel_id}", response_model=ApiResponse[ChannelStats])
async def channel_stats(
    channel_id: UUID,
    published_only: bool = Query(False, alias="publishedOnly"),
    db: AsyncSession = Depends(get_db),
):
    stats = await dashboard_service.get_channel_stats(db, channel_id, published_only=published_only)
    return ok(stats, "Channel stats fetched successfully")


@router.get("/videos", response_model=ApiResponse[list[DashboardVideo]])
async def channel_videos(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    videos = await dashboard_service.get_channel_videos(db, current_user.id)
    return ok(videos, "Channel videos fetched successfully")
