"""Celery application for background maintenance (expiry of likes left by deleted tweets)."""
from celery import Celery

from vidtube.core.config import settings

celery_app = Celery(
    "vidtube",
    broker=settings.CELERY_BROKER_URL,
    include=["vidtube.workers.maintenance"],
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "purge-expired-tweet-likes": {
            "task": "vidtube.workers.maintenance.purge_expired_tweet_likes",
            "schedule": float(settings.LIKE_PURGE_INTERVAL_SECONDS),
        },
    },
)
