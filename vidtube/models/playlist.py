"""Playlist model with ordered, duplicate-free video membership."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from vidtube.db.session import Base


class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="playlists")
    entries = relationship(
        "PlaylistVideo",
        back_populates="playlist",
        cascade="all, delete-orphan",
        order_by="PlaylistVideo.position",
    )


class PlaylistVideo(Base):
    __tablename__ = "playlist_videos"

    playlist_id = Column(Uuid, ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True)
    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    playlist = relationship("Playlist", back_populates="entries")
