"""Subscription endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_db
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, Page, ok
from vidtube.schemas.engagement import SubscribedChannel, Subscriber, SubscriptionStatus
from vidtube.schemas.video import VideoSummary
from vidtube.services import subscription_service
from vidtube.services.pagination import build_page

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/c/{channel_id}", response_model=ApiResponse[SubscriptionStatus])
async def toggle_subscription(
    channel_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await subscription_service.toggle_subscription(db, channel_id, current_user.id)
    await db.commit()
    message = "Subscribed successfully" if result.subscribed else "Unsubscribed successfully"
    return ok(result, message)


@router.get("/u/{subscriber_id}", response_model=ApiResponse[Page[SubscribedChannel]])
async def subscribed_channels(
    subscriber_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await subscription_service.list_subscribed_channels(db, subscriber_id, page=page, limit=limit)
    return ok(build_page(items, total, page, limit), "Subscribed channels fetched successfully")


@router.get("/videos", response_model=ApiResponse[Page[VideoSummary]])
async def subscription_feed(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    videos, total = await subscription_service.subscription_feed(db, current_user.id, page=page, limit=limit)
    return ok(build_page(videos, total, page, limit), "Subscribed videos fetched successfully")


@router.get("", response_model=ApiResponse[Page[Subscriber]])
async def own_subscribers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await subscription_service.list_own_subscribers(db, current_user.id, page=page, limit=limit)
    return ok(build_page(items, total, page, limit), "Subscribers fetched successfully")
