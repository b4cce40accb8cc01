"""Channel subscriptions: toggle, subscriber/subscription lists and the subscription feed."""
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import BadRequestError, NotFoundError
from vidtube.db.session import insert_ignoring_conflicts
from vidtube.models.engagement import LikeKind, Subscription
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.schemas.engagement import SubscribedChannel, Subscriber, SubscriptionStatus
from vidtube.schemas.video import VideoSummary
from vidtube.services.pagination import paginate
from vidtube.services.projections import is_subscribed, likes_count, owner_public, subscribers_count
from vidtube.services.video_service import video_to_summary


async def _require_user(db: AsyncSession, user_id: UUID, message: str = "User not found") -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(message)
    return user


async def toggle_subscription(db: AsyncSession, channel_id: UUID, actor_id: UUID) -> SubscriptionStatus:
    if channel_id == actor_id:
        raise BadRequestError("You cannot subscribe to your own channel")

    result = await db.execute(
        delete(Subscription).where(
            Subscription.subscriber_id == actor_id,
            Subscription.channel_id == channel_id,
        ),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount:
        subscribed = False
    else:
        await _require_user(db, channel_id, "Channel not found")
        await db.execute(
            insert_ignoring_conflicts(db, Subscription)
            .values(subscriber_id=actor_id, channel_id=channel_id)
            .on_conflict_do_nothing()
        )
        subscribed = True
    count = await db.scalar(select(subscribers_count(channel_id)))
    return SubscriptionStatus(subscribed=subscribed, subscribers_count=count or 0)


async def list_subscribed_channels(
    db: AsyncSession,
    subscriber_id: UUID,
    *,
    page: int,
    limit: int,
) -> tuple[list[SubscribedChannel], int]:
    """Channels a user subscribes to, most recent subscription first."""
    await _require_user(db, subscriber_id, "Subscriber not found")
    stmt = (
        select(Subscription.created_at, User, subscribers_count(User.id).label("subscribers_count"))
        .join(User, User.id == Subscription.channel_id)
        .where(Subscription.subscriber_id == subscriber_id)
        .order_by(Subscription.created_at.desc(), Subscription.id)
    )
    rows, total = await paginate(db, stmt, page=page, limit=limit)
    items = [
        SubscribedChannel(subscribed_at=at, channel=owner_public(channel, subscribers=count))
        for at, channel, count in rows
    ]
    return items, total


async def list_own_subscribers(
    db: AsyncSession,
    channel_id: UUID,
    *,
    page: int,
    limit: int,
) -> tuple[list[Subscriber], int]:
    """Subscribers of the actor's channel, flagged when the actor subscribes back."""
    stmt = (
        select(
            Subscription.created_at,
            User,
            subscribers_count(User.id).label("subscribers_count"),
            is_subscribed(User.id, channel_id).label("is_subscribed"),
        )
        .join(User, User.id == Subscription.subscriber_id)
        .where(Subscription.channel_id == channel_id)
        .order_by(Subscription.created_at.desc(), Subscription.id)
    )
    rows, total = await paginate(db, stmt, page=page, limit=limit)
    items = [
        Subscriber(subscribed_at=at, subscriber=owner_public(user, subscribers=count, subscribed=back))
        for at, user, count, back in rows
    ]
    return items, total


async def subscription_feed(
    db: AsyncSession,
    actor_id: UUID,
    *,
    page: int,
    limit: int,
) -> tuple[list[VideoSummary], int]:
    """Published videos of every subscribed channel, newest first."""
    channels = select(Subscription.channel_id).where(Subscription.subscriber_id == actor_id)
    stmt = (
        select(Video, User, likes_count(LikeKind.VIDEO, Video.id).label("likes_count"))
        .join(User, User.id == Video.owner_id)
        .where(Video.is_published.is_(True), Video.owner_id.in_(channels))
        .order_by(Video.created_at.desc(), Video.id)
    )
    rows, total = await paginate(db, stmt, page=page, limit=limit)
    return [video_to_summary(v, owner, count) for v, owner, count in rows], total
