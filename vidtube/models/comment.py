"""Comment model. Top-level comments have no parent; replies are one level deep."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Text, Uuid, text
from sqlalchemy.orm import relationship

from vidtube.db.session import Base


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        # At most one pinned comment per video
        Index(
            "uq_comments_pinned_per_video",
            "video_id",
            unique=True,
            postgresql_where=text("is_pinned"),
            sqlite_where=text("is_pinned = 1"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Uuid, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    is_pinned = Column(Boolean, nullable=False, default=False)
    is_edited = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User")
