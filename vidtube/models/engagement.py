"""Engagement models: Like (tagged union over video/comment/tweet) and Subscription."""
import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from vidtube.db.session import Base


class LikeKind(str, enum.Enum):
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("liked_by", "kind", "target_id", name="uq_likes_liked_by_kind_target"),
        Index("ix_likes_kind_target", "kind", "target_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    kind = Column(Enum(LikeKind, name="like_kind", values_callable=lambda e: [m.value for m in e]), nullable=False)
    target_id = Column(Uuid, nullable=False)
    liked_by = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Set when the liked tweet is gone but the like could not be removed; purged by the expiry task
    tweet_deleted = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User")


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_subscriber_channel"),
        CheckConstraint("subscriber_id <> channel_id", name="ck_subscriptions_not_self"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subscriber_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    channel_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    subscriber = relationship("User", foreign_keys=[subscriber_id])
    channel = relationship("User", foreign_keys=[channel_id])
