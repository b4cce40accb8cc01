"""V1 API router aggregation."""
from fastapi import APIRouter

from vidtube.api.v1.endpoints import (
    comments,
    dashboard,
    healthcheck,
    likes,
    playlist,
    search_history,
    subscriptions,
    tweets,
    users,
    videos,
)

api_router = APIRouter(prefix="/v1")
api_router.include_router(healthcheck.router)
api_router.include_router(users.router)
api_router.include_router(videos.router)
api_router.include_router(comments.router)
api_router.include_router(likes.router)
api_router.include_router(subscriptions.router)
api_router.include_router(tweets.router)
api_router.include_router(playlist.router)
api_router.include_router(dashboard.router)
api_router.include_router(search_history.router)
