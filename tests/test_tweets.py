import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from conftest import API
from vidtube.models.engagement import Like
from vidtube.models.tweet import Tweet
from vidtube.services import tweet_service
from vidtube.workers.maintenance import purge_marked_likes


async def _tweet(client, user, content):
    resp = await client.post(f"{API}/tweets", json={"content": content}, headers=user.headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


@pytest.mark.asyncio
async def test_tweet_crud(client, alice, bob):
    tweet_id = await _tweet(client, alice, "  hello world  ")

    resp = await client.patch(f"{API}/tweets/{tweet_id}", json={"content": "edited"}, headers=bob.headers)
    assert resp.status_code == 403

    resp = await client.patch(f"{API}/tweets/{tweet_id}", json={"content": "edited"}, headers=alice.headers)
    assert resp.json()["data"]["content"] == "edited"

    resp = await client.post(f"{API}/tweets", json={"content": "   "}, headers=alice.headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_user_tweets_newest_first_with_limit(client, alice, bob):
    ids = [await _tweet(client, alice, f"tweet {i}") for i in range(3)]
    await client.post(f"{API}/likes/toggle/t/{ids[2]}", headers=bob.headers)

    resp = await client.get(f"{API}/tweets/user/{alice.id}", headers=bob.headers)
    tweets = resp.json()["data"]
    assert [t["id"] for t in tweets] == list(reversed(ids))
    assert tweets[0]["likesCount"] == 1
    assert tweets[0]["isLiked"] is True

    resp = await client.get(f"{API}/tweets/user/{alice.id}", params={"limit": 2})
    assert len(resp.json()["data"]) == 2

    resp = await client.get(f"{API}/tweets/user/{uuid.uuid4()}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_only_owner_can_delete_tweet(client, alice, bob):
    tweet_id = await _tweet(client, alice, "mine")
    resp = await client.delete(f"{API}/tweets/{tweet_id}", headers=bob.headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Tweet not found or you are not its owner"


@pytest.mark.asyncio
async def test_delete_tweet_removes_its_likes(client, session_maker, alice, bob):
    tweet_id = await _tweet(client, alice, "liked")
    await client.post(f"{API}/likes/toggle/t/{tweet_id}", headers=bob.headers)

    resp = await client.delete(f"{API}/tweets/{tweet_id}", headers=alice.headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"tweetId": tweet_id}

    async with session_maker() as db:
        assert await db.scalar(select(func.count(Tweet.id))) == 0
        assert await db.scalar(select(func.count(Like.id))) == 0


@pytest.mark.asyncio
async def test_delete_tweet_survives_like_cleanup_failures(client, session_maker, alice, bob):
    tweet_id = await _tweet(client, alice, "doomed")
    await client.post(f"{API}/likes/toggle/t/{tweet_id}", headers=bob.headers)

    purge = AsyncMock(side_effect=SQLAlchemyError("boom"))
    mark = AsyncMock(side_effect=SQLAlchemyError("boom"))
    with patch.object(tweet_service, "purge_tweet_likes", purge), patch.object(
        tweet_service, "mark_tweet_likes_deleted", mark
    ):
        resp = await client.delete(f"{API}/tweets/{tweet_id}", headers=alice.headers)
    assert resp.status_code == 200

    async with session_maker() as db:
        assert await db.scalar(select(func.count(Tweet.id))) == 0
        like = await db.scalar(select(Like))
    assert like is not None
    assert like.tweet_deleted is None


@pytest.mark.asyncio
async def test_unremovable_likes_are_marked_then_purged(client, session_maker, alice, bob):
    tweet_id = await _tweet(client, alice, "doomed")
    await client.post(f"{API}/likes/toggle/t/{tweet_id}", headers=bob.headers)

    with patch.object(tweet_service, "purge_tweet_likes", AsyncMock(side_effect=SQLAlchemyError("boom"))):
        resp = await client.delete(f"{API}/tweets/{tweet_id}", headers=alice.headers)
    assert resp.status_code == 200

    async with session_maker() as db:
        like = await db.scalar(select(Like))
        assert like.tweet_deleted is not None

        assert await purge_marked_likes(db, older_than_seconds=3600) == 0
        assert await purge_marked_likes(db, older_than_seconds=0) == 1
        assert await db.scalar(select(func.count(Like.id))) == 0
