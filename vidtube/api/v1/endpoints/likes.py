"""Like toggles for videos, comments and tweets, and the liked-videos list."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_db
from vidtube.models.engagement import LikeKind
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, Page, ok
from vidtube.schemas.engagement import LikeStatus
from vidtube.schemas.video import LikedVideo
from vidtube.services import like_service
from vidtube.services.pagination import build_page

router = APIRouter(prefix="/likes", tags=["likes"])


async def _toggle(db: AsyncSession, kind: LikeKind, target_id: UUID, actor: User) -> dict:
    status = await like_service.toggle_like(db, kind, target_id, actor.id)
    await db.commit()
    message = f"{kind.value.capitalize()} liked successfully" if status.liked else f"{kind.value.capitalize()} unliked successfully"
    return ok(status, message)


@router.post("/toggle/v/{video_id}", response_model=ApiResponse[LikeStatus])
async def toggle_video_like(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _toggle(db, LikeKind.VIDEO, video_id, current_user)


@router.post("/toggle/c/{comment_id}", response_model=ApiResponse[LikeStatus])
async def toggle_comment_like(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _toggle(db, LikeKind.COMMENT, comment_id, current_user)


@router.post("/toggle/t/{tweet_id}", response_model=ApiResponse[LikeStatus])
async def toggle_tweet_like(
    tweet_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _toggle(db, LikeKind.TWEET, tweet_id, current_user)


@router.get("/videos", response_model=ApiResponse[Page[LikedVideo]])
async def liked_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await like_service.list_liked_videos(db, current_user.id, page=page, limit=limit)
    return ok(build_page(items, total, page, limit), "Liked videos fetched successfully")
