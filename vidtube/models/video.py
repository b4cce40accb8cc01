"""Video model, its tags and the closed category set."""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from vidtube.db.session import Base

MAX_TAGS = 5


class VideoCategory(str, enum.Enum):
    MUSIC = "Music"
    GAMING = "Gaming"
    EDUCATION = "Education"
    ENTERTAINMENT = "Entertainment"
    SPORTS = "Sports"
    NEWS = "News"
    TECHNOLOGY = "Technology"
    COMEDY = "Comedy"
    FILM = "Film & Animation"
    TRAVEL = "Travel & Events"
    HOWTO = "Howto & Style"
    PEOPLE = "People & Blogs"
    SCIENCE = "Science & Technology"
    OTHER = "Other"


# Pseudo-category accepted by the feed: all categories ranked by views
TRENDING = "trending"


class Video(Base):
    __tablename__ = "videos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_url = Column(Text, nullable=False)
    video_public_id = Column(String(255), nullable=False)
    thumbnail_url = Column(Text, nullable=False)
    thumbnail_public_id = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    duration = Column(Float, nullable=False, default=0)  # seconds, reported by the blob store
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="videos")
    tag_rows = relationship(
        "VideoTag",
        back_populates="video",
        cascade="all, delete-orphan",
        order_by="VideoTag.position",
        lazy="selectin",
    )

    @property
    def tags(self) -> list[str]:
        return [t.tag for t in self.tag_rows]

    def set_tags(self, tags: list[str]) -> None:
        self.tag_rows = [VideoTag(tag=tag, position=i) for i, tag in enumerate(normalize_tags(tags))]


class VideoTag(Base):
    __tablename__ = "video_tags"

    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True)
    tag = Column(String(50), primary_key=True, index=True)  # lower-cased
    position = Column(Integer, nullable=False, default=0)

    video = relationship("Video", back_populates="tag_rows")


def normalize_tags(tags: list[str]) -> list[str]:
    """Lower-case, strip and de-duplicate tags, keeping first-seen order."""
    seen: list[str] = []
    for raw in tags:
        tag = raw.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
