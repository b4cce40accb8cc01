from vidtube.models.user import User, WatchHistoryEntry
from vidtube.models.video import Video, VideoTag, VideoCategory
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like, LikeKind, Subscription
from vidtube.models.tweet import Tweet
from vidtube.models.playlist import Playlist, PlaylistVideo
from vidtube.models.search_history import SearchHistory

__all__ = [
    "User",
    "WatchHistoryEntry",
    "Video",
    "VideoTag",
    "VideoCategory",
    "Comment",
    "Like",
    "LikeKind",
    "Subscription",
    "Tweet",
    "Playlist",
    "PlaylistVideo",
    "SearchHistory",
]
