"""Tweet endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_current_user_optional, get_db
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, ok
from vidtube.schemas.tweet import TweetCreate, TweetResponse, TweetUpdate
from vidtube.services import tweet_service

router = APIRouter(prefix="/tweets", tags=["tweets"])


@router.post("", response_model=ApiResponse[TweetResponse], status_code=status.HTTP_201_CREATED)
async def create_tweet(
    data: TweetCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tweet = await tweet_service.create_tweet(db, current_user, data.content)
    await db.commit()
    return ok(tweet, "Tweet created successfully", status.HTTP_201_CREATED)


@router.get("/user/{user_id}", response_model=ApiResponse[list[TweetResponse]])
async def user_tweets(
    user_id: UUID,
    limit: int | None = Query(None, ge=1, le=100),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    actor_id = current_user.id if current_user else None
    tweets = await tweet_service.list_user_tweets(db, user_id, actor_id, limit=limit)
    return ok(tweets, "Tweets fetched successfully")


@router.patch("/{tweet_id}", response_model=ApiResponse[TweetResponse])
async def update_tweet(
    tweet_id: UUID,
    data: TweetUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tweet = await tweet_service.update_tweet(db, tweet_id, current_user, data.content)
    await db.commit()
    return ok(tweet, "Tweet updated successfully")


@router.delete("/{tweet_id}", response_model=ApiResponse[dict])
async def delete_tweet(
    tweet_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await tweet_service.delete_tweet(db, tweet_id, current_user.id)
    return ok({"tweetId": str(tweet_id)}, "Tweet deleted successfully")
