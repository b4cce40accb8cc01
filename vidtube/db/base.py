"""SQLAlchemy declarative base and model imports for Alembic."""
from vidtube.db.session import Base  # noqa: F401
from vidtube.models.user import User, WatchHistoryEntry  # noqa: F401
from vidtube.models.video import Video, VideoTag  # noqa: F401
from vidtube.models.comment import Comment  # noqa: F401
from vidtube.models.engagement import Like, Subscription  # noqa: F401
from vidtube.models.tweet import Tweet  # noqa: F401
from vidtube.models.playlist import Playlist, PlaylistVideo  # noqa: F401
from vidtube.models.search_history import SearchHistory  # noqa: F401

__all__ = [
    "Base",
    "User",
    "WatchHistoryEntry",
    "Video",
    "VideoTag",
    "Comment",
    "Like",
    "Subscription",
    "Tweet",
    "Playlist",
    "PlaylistVideo",
    "SearchHistory",
]
