"""Celery tasks for store maintenance."""
import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from vidtube.core.celery_app import celery_app
from vidtube.core.config import settings
from vidtube.models.engagement import Like

logger = logging.getLogger(__name__)


async def purge_marked_likes(db: AsyncSession, older_than_seconds: int | None = None) -> int:
    """Delete likes whose ``tweet_deleted`` marker is older than the expiry window."""
    seconds = settings.TWEET_LIKE_EXPIRY_SECONDS if older_than_seconds is None else older_than_seconds
    cutoff = datetime.utcnow() - timedelta(seconds=seconds)
    result = await db.execute(
        delete(Like).where(Like.tweet_deleted.is_not(None), Like.tweet_deleted <= cutoff),
        execution_options={"synchronize_session": False},
    )
    await db.commit()
    return result.rowcount


async def _purge() -> int:
    # Each task run gets its own event loop, so no pooled connections are reused
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
    try:
        async with async_sessionmaker(engine, expire_on_commit=False)() as db:
            return await purge_marked_likes(db)
    finally:
        await engine.dispose()


@celery_app.task
def purge_expired_tweet_likes() -> int:
    removed = asyncio.run(_purge())
    if removed:
        logger.info("Purged %d like(s) of deleted tweets", removed)
    return removed
