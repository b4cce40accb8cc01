"""Print every channel with its subscriber and video counts."""
import asyncio
import os
import sys

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select

from vidtube.db.session import async_session_maker
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.services.projections import subscribers_count


async def list_channels():
    videos = (
        select(func.count(Video.id))
        .where(Video.owner_id == User.id)
        .correlate_except(Video)
        .scalar_subquery()
    )
    async with async_session_maker() as db:
        rows = (
            await db.execute(
                select(User.username, User.email, subscribers_count(User.id), videos).order_by(User.created_at)
            )
        ).all()

    if not rows:
        print("No users found in database.")
        return
    print(f"{len(rows)} channel(s):")
    for username, email, subscribers, video_count in rows:
        print(f"- {username} ({email}) | subscribers: {subscribers} | videos: {video_count}")


if __name__ == "__main__":
    asyncio.run(list_channels())
