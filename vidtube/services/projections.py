"""Derived fields shared by the read-model compositions.

Counts and membership flags are never stored; each one is a correlated
subquery evaluated per row of the outer select, so any list can be filtered,
sorted and paginated on them like a plain column. Flags that depend on the
requesting user degrade to ``false`` for anonymous callers.
"""
from uuid import UUID

from sqlalchemy import exists, false, func, select
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement

from vidtube.models.comment import Comment
from vidtube.models.engagement import Like, LikeKind, Subscription
from vidtube.models.user import User
from vidtube.schemas.user import OwnerPublic


def likes_count(kind: LikeKind, target_id: ColumnElement) -> ColumnElement:
    return (
        select(func.count(Like.id))
        .where(Like.kind == kind, Like.target_id == target_id)
        .correlate_except(Like)
        .scalar_subquery()
    )


def is_liked(kind: LikeKind, target_id: ColumnElement, actor_id: UUID | None) -> ColumnElement:
    if actor_id is None:
        return false()
    return (
        exists()
        .where(Like.kind == kind, Like.target_id == target_id, Like.liked_by == actor_id)
        .correlate_except(Like)
    )


def subscribers_count(channel_id: ColumnElement) -> ColumnElement:
    return (
        select(func.count(Subscription.id))
        .where(Subscription.channel_id == channel_id)
        .correlate_except(Subscription)
        .scalar_subquery()
    )


def subscriptions_count(subscriber_id: ColumnElement) -> ColumnElement:
    return (
        select(func.count(Subscription.id))
        .where(Subscription.subscriber_id == subscriber_id)
        .correlate_except(Subscription)
        .scalar_subquery()
    )


def is_subscribed(channel_id: ColumnElement, actor_id: UUID | None) -> ColumnElement:
    if actor_id is None:
        return false()
    return (
        exists()
        .where(Subscription.channel_id == channel_id, Subscription.subscriber_id == actor_id)
        .correlate_except(Subscription)
    )


def replies_count(comment_id: ColumnElement) -> ColumnElement:
    reply = aliased(Comment)
    return select(func.count(reply.id)).where(reply.parent_id == comment_id).scalar_subquery()


def owner_public(
    user: User,
    subscribers: int | None = None,
    subscribed: bool | None = None,
) -> OwnerPublic:
    return OwnerPublic(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar=user.avatar_url,
        subscribers_count=subscribers,
        is_subscribed=None if subscribed is None else bool(subscribed),
    )
