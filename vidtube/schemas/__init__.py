from vidtube.schemas.common import ApiResponse, ErrorResponse, Page
from vidtube.schemas.user import (
    UserResponse,
    OwnerPublic,
    ChannelProfile,
    LoginRequest,
    LoginResponse,
    TokenPair,
)
from vidtube.schemas.video import VideoResponse, VideoSummary, VideoDetail, WatchHistoryDay
from vidtube.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from vidtube.schemas.tweet import TweetCreate, TweetUpdate, TweetResponse
from vidtube.schemas.playlist import PlaylistCreate, PlaylistUpdate, PlaylistDetail
