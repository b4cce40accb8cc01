"""Tweet business logic."""
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import ForbiddenError, NotFoundError
from vidtube.models.engagement import Like, LikeKind
from vidtube.models.tweet import Tweet
from vidtube.models.user import User
from vidtube.schemas.tweet import TweetResponse
from vidtube.services.projections import is_liked, likes_count, owner_public

logger = logging.getLogger(__name__)

NO_SYNC = {"synchronize_session": False}


def tweet_to_response(tweet: Tweet, owner: User | None, likes: int = 0, liked: bool = False) -> TweetResponse:
    return TweetResponse(
        id=tweet.id,
        content=tweet.content,
        owner_id=tweet.owner_id,
        owner=owner_public(owner) if owner is not None else None,
        likes_count=likes or 0,
        is_liked=bool(liked),
        created_at=tweet.created_at,
        updated_at=tweet.updated_at,
    )


async def create_tweet(db: AsyncSession, owner: User, content: str) -> TweetResponse:
    tweet = Tweet(owner_id=owner.id, content=content)
    db.add(tweet)
    await db.flush()
    return tweet_to_response(tweet, owner)


async def update_tweet(db: AsyncSession, tweet_id: UUID, actor: User, content: str) -> TweetResponse:
    tweet = await db.get(Tweet, tweet_id)
    if not tweet:
        raise NotFoundError("Tweet not found")
    if tweet.owner_id != actor.id:
        raise ForbiddenError("You can only edit your own tweets")
    tweet.content = content
    await db.flush()
    likes = await db.scalar(select(likes_count(LikeKind.TWEET, tweet.id)))
    liked = await db.scalar(select(is_liked(LikeKind.TWEET, tweet.id, actor.id)))
    return tweet_to_response(tweet, actor, likes, liked)


async def list_user_tweets(
    db: AsyncSession,
    user_id: UUID,
    actor_id: UUID | None,
    limit: int | None = None,
) -> list[TweetResponse]:
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")
    stmt = (
        select(
            Tweet,
            User,
            likes_count(LikeKind.TWEET, Tweet.id).label("likes_count"),
            is_liked(LikeKind.TWEET, Tweet.id, actor_id).label("is_liked"),
        )
        .join(User, User.id == Tweet.owner_id)
        .where(Tweet.owner_id == user_id)
        .order_by(Tweet.created_at.desc(), Tweet.id)
    )
    if limit:
        stmt = stmt.limit(limit)
    rows = (await db.execute(stmt)).all()
    return [tweet_to_response(t, owner, likes, liked) for t, owner, likes, liked in rows]


async def purge_tweet_likes(db: AsyncSession, tweet_id: UUID) -> int:
    result = await db.execute(
        delete(Like).where(Like.kind == LikeKind.TWEET, Like.target_id == tweet_id),
        execution_options=NO_SYNC,
    )
    return result.rowcount


async def mark_tweet_likes_deleted(db: AsyncSession, tweet_id: UUID) -> int:
    """Stamp the likes so the expiry task removes them later."""
    result = await db.execute(
        update(Like)
        .where(Like.kind == LikeKind.TWEET, Like.target_id == tweet_id)
        .values(tweet_deleted=datetime.utcnow()),
        execution_options=NO_SYNC,
    )
    return result.rowcount


async def delete_tweet(db: AsyncSession, tweet_id: UUID, actor_id: UUID) -> None:
    """Delete a tweet owned by the actor, then clean up its likes.

    The tweet delete is committed on its own. Like cleanup that fails falls
    back to marking the likes for expiry, and a failed fallback only leaves
    orphaned likes behind; neither undoes the tweet delete.
    """
    result = await db.execute(
        delete(Tweet).where(Tweet.id == tweet_id, Tweet.owner_id == actor_id),
        execution_options=NO_SYNC,
    )
    if result.rowcount == 0:
        raise NotFoundError("Tweet not found or you are not its owner")
    await db.commit()

    try:
        removed = await purge_tweet_likes(db, tweet_id)
        await db.commit()
        logger.debug("Removed %d like(s) of deleted tweet %s", removed, tweet_id)
        return
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("Could not remove likes of deleted tweet %s, marking them for expiry", tweet_id, exc_info=True)

    try:
        marked = await mark_tweet_likes_deleted(db, tweet_id)
        await db.commit()
        logger.info("Marked %d like(s) of deleted tweet %s for expiry", marked, tweet_id)
    except SQLAlchemyError:
        await db.rollback()
        logger.error("Likes of deleted tweet %s are left orphaned", tweet_id, exc_info=True)
