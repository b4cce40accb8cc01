"""User model and per-day watch history."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from vidtube.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)  # stored lower-cased
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    avatar_url = Column(Text, nullable=False)
    avatar_public_id = Column(String(255), nullable=False)
    cover_image_url = Column(Text, nullable=True)
    cover_image_public_id = Column(String(255), nullable=True)
    refresh_token = Column(Text, nullable=True)  # single active session
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan")
    tweets = relationship("Tweet", back_populates="owner", cascade="all, delete-orphan")
    playlists = relationship("Playlist", back_populates="owner", cascade="all, delete-orphan")
    watch_history = relationship("WatchHistoryEntry", back_populates="user", cascade="all, delete-orphan")


class WatchHistoryEntry(Base):
    """One watched video inside a user's calendar-day bucket."""

    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "watched_on", "video_id", name="uq_watch_history_user_day_video"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    watched_on = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="watch_history")
    video = relationship("Video")
