"""Report likes whose target video, comment or tweet no longer exists."""
import asyncio
import os
import sys

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select

from vidtube.db.session import async_session_maker
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like, LikeKind
from vidtube.models.tweet import Tweet
from vidtube.models.video import Video

TARGETS = {
    LikeKind.VIDEO: Video,
    LikeKind.COMMENT: Comment,
    LikeKind.TWEET: Tweet,
}


async def check_likes():
    async with async_session_maker() as db:
        total_likes = await db.scalar(select(func.count(Like.id)))
        print(f"Total likes in database: {total_likes}")

        marked = await db.scalar(select(func.count(Like.id)).where(Like.tweet_deleted.is_not(None)))
        print(f"Likes marked for expiry: {marked}")

        for kind, model in TARGETS.items():
            orphaned = await db.scalar(
                select(func.count(Like.id)).where(
                    Like.kind == kind,
                    Like.target_id.not_in(select(model.id)),
                )
            )
            print(f"Orphaned {kind.value} likes: {orphaned}")


if __name__ == "__main__":
    asyncio.run(check_likes())
