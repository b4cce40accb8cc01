import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from conftest import API, register_and_login, seed_videos, upload_video
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like
from vidtube.models.user import WatchHistoryEntry
from vidtube.models.video import Video
from vidtube.services import video_service


@pytest.mark.asyncio
async def test_unpublished_video_is_hidden_until_published(client, alice):
    video_id = await upload_video(client, alice, publish=False)

    resp = await client.get(f"{API}/videos/{video_id}")
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["statusCode"] == 404

    resp = await client.patch(f"{API}/videos/toggle/publish/{video_id}", headers=alice.headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"isPublished": True}

    resp = await client.get(f"{API}/videos/{video_id}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["views"] == 1
    assert data["isLiked"] is False
    assert data["likesCount"] == 0
    assert data["owner"]["username"] == "alice"
    assert data["owner"]["isSubscribed"] is False
    assert data["owner"]["subscribersCount"] == 0
    assert data["duration"] == 12.5


@pytest.mark.asyncio
async def test_malformed_id_is_bad_request(client):
    resp = await client.get(f"{API}/videos/not-a-uuid")
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "path.video_id"


@pytest.mark.asyncio
async def test_unknown_video_is_not_found(client):
    resp = await client.get(f"{API}/videos/{uuid.uuid4()}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_watch_history_records_video_once_per_day(client, session_maker, alice, bob):
    video_id = await upload_video(client, alice)

    for _ in range(2):
        resp = await client.get(f"{API}/videos/{video_id}", headers=bob.headers)
        assert resp.status_code == 200
    assert resp.json()["data"]["views"] == 2

    async with session_maker() as db:
        entries = await db.scalar(select(func.count(WatchHistoryEntry.id)))
    assert entries == 1

    resp = await client.get(f"{API}/users/watch-history", headers=bob.headers)
    page = resp.json()["data"]
    assert page["total"] == 1
    assert len(page["items"]) == 1
    assert [v["id"] for v in page["items"][0]["videos"]] == [video_id]

    resp = await client.delete(f"{API}/users/watch-history", headers=bob.headers)
    assert resp.json()["data"]["removed"] == 1
    resp = await client.get(f"{API}/users/watch-history", headers=bob.headers)
    assert resp.json()["data"]["items"] == []


@pytest.mark.asyncio
async def test_pagination_over_feed(client, session_maker, alice):
    await seed_videos(session_maker, alice.id, 25)

    resp = await client.get(f"{API}/videos", params={"page": 2, "limit": 10, "sortBy": "createdAt", "sortType": "asc"})
    page = resp.json()["data"]
    assert page["total"] == 25
    assert page["totalPages"] == 3
    assert page["hasNextPage"] is True
    assert page["hasPrevPage"] is True
    assert [v["title"] for v in page["items"]] == [f"video {i:02d}" for i in range(11, 21)]

    resp = await client.get(f"{API}/videos", params={"page": 3, "limit": 10, "sortBy": "createdAt", "sortType": "asc"})
    page = resp.json()["data"]
    assert len(page["items"]) == 5
    assert page["hasNextPage"] is False


@pytest.mark.asyncio
async def test_invalid_sort_is_rejected(client):
    resp = await client.get(f"{API}/videos", params={"sortBy": "password"})
    assert resp.status_code == 400
    resp = await client.get(f"{API}/videos", params={"sortType": "sideways"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_trending_orders_by_views(client, session_maker, alice):
    await seed_videos(session_maker, alice.id, 5)
    resp = await client.get(f"{API}/videos", params={"category": "trending"})
    views = [v["views"] for v in resp.json()["data"]["items"]]
    assert views == sorted(views, reverse=True)


@pytest.mark.asyncio
async def test_empty_feed_is_ok(client):
    resp = await client.get(f"{API}/videos")
    assert resp.status_code == 200
    assert resp.json()["data"]["items"] == []


@pytest.mark.asyncio
async def test_related_videos_share_a_tag(client, alice):
    a = await upload_video(client, alice, title="A", tags="cats")
    b = await upload_video(client, alice, title="B", tags="Cats,dogs")
    c = await upload_video(client, alice, title="C", category="Gaming", tags="cars")

    resp = await client.get(f"{API}/videos/related/{a}")
    ids = [v["id"] for v in resp.json()["data"]]
    assert b in ids
    assert a not in ids
    assert c not in ids

    resp = await client.get(f"{API}/videos/tags/CATS")
    assert {v["id"] for v in resp.json()["data"]["items"]} == {a, b}


@pytest.mark.asyncio
async def test_too_many_tags_rejected(client, alice):
    resp = await client.post(
        f"{API}/videos",
        data={"title": "t", "description": "d", "category": "Music", "tags": "a,b,c,d,e,f"},
        files={"video": ("v.mp4", b"0" * 10, "video/mp4"), "thumbnail": ("t.png", b"1", "image/png")},
        headers=alice.headers,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_publish_rejects_wrong_file_type(client, alice):
    resp = await client.post(
        f"{API}/videos",
        data={"title": "t", "description": "d", "category": "Music"},
        files={"video": ("v.gif", b"GIF89a", "image/gif"), "thumbnail": ("t.png", b"1", "image/png")},
        headers=alice.headers,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_publish_fails_when_upload_fails(client, storage, alice):
    storage.fail_uploads = True
    resp = await client.post(
        f"{API}/videos",
        data={"title": "t", "description": "d", "category": "Music"},
        files={"video": ("v.mp4", b"0" * 10, "video/mp4"), "thumbnail": ("t.png", b"1", "image/png")},
        headers=alice.headers,
    )
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to upload video"


@pytest.mark.asyncio
async def test_update_video_replaces_tags_and_thumbnail(client, storage, alice):
    video_id = await upload_video(client, alice, tags="one,two")
    before = set(storage.blobs)

    resp = await client.patch(
        f"{API}/videos/{video_id}",
        data={"title": "Renamed", "tags": "two,three"},
        files={"thumbnail": ("new.png", b"new", "image/png")},
        headers=alice.headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["title"] == "Renamed"
    assert data["tags"] == ["two", "three"]
    assert any(pid in before for pid in storage.deleted)


@pytest.mark.asyncio
async def test_only_owner_can_modify_video(client, alice, bob):
    video_id = await upload_video(client, alice)
    resp = await client.patch(f"{API}/videos/toggle/publish/{video_id}", headers=bob.headers)
    assert resp.status_code == 403
    resp = await client.delete(f"{API}/videos/{video_id}", headers=bob.headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_delete_video_cascades_and_releases_blobs(client, session_maker, storage, alice, bob):
    video_id = await upload_video(client, alice)
    resp = await client.post(f"{API}/comments/{video_id}", json={"content": "first"}, headers=bob.headers)
    comment_id = resp.json()["data"]["id"]
    await client.post(f"{API}/likes/toggle/v/{video_id}", headers=bob.headers)
    await client.post(f"{API}/likes/toggle/c/{comment_id}", headers=alice.headers)

    resp = await client.delete(f"{API}/videos/{video_id}", headers=alice.headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data == {"deletedCount": 1, "commentsDeleted": 1, "likesDeleted": 2}

    async with session_maker() as db:
        assert await db.scalar(select(func.count(Video.id))) == 0
        assert await db.scalar(select(func.count(Comment.id))) == 0
        assert await db.scalar(select(func.count(Like.id))) == 0
    assert len(storage.deleted) == 2


@pytest.mark.asyncio
async def test_delete_video_rolls_back_when_comments_are_not_removed(client, session_maker, storage, alice, bob):
    video_id = await upload_video(client, alice)
    await client.post(f"{API}/comments/{video_id}", json={"content": "stays"}, headers=bob.headers)
    await client.post(f"{API}/likes/toggle/v/{video_id}", headers=bob.headers)

    with patch.object(video_service, "delete_video_comments", AsyncMock(return_value=0)):
        resp = await client.delete(f"{API}/videos/{video_id}", headers=alice.headers)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to delete comments of the video"

    async with session_maker() as db:
        assert await db.scalar(select(func.count(Video.id))) == 1
        assert await db.scalar(select(func.count(Comment.id))) == 1
        assert await db.scalar(select(func.count(Like.id))) == 1


@pytest.mark.asyncio
async def test_delete_video_without_comments_or_likes(client, session_maker, alice):
    video_id = await upload_video(client, alice)
    resp = await client.delete(f"{API}/videos/{video_id}", headers=alice.headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"deletedCount": 1, "commentsDeleted": 0, "likesDeleted": 0}


@pytest.mark.asyncio
async def test_delete_video_tolerates_blob_failures(client, session_maker, storage, alice, bob):
    video_id = await upload_video(client, alice)
    await client.post(f"{API}/comments/{video_id}", json={"content": "gone"}, headers=bob.headers)
    storage.fail_deletes = True

    resp = await client.delete(f"{API}/videos/{video_id}", headers=alice.headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["commentsDeleted"] == 1

    async with session_maker() as db:
        assert await db.scalar(select(func.count(Video.id))) == 0
        assert await db.scalar(select(func.count(Comment.id))) == 0


@pytest.mark.asyncio
async def test_channel_stats(client, alice, bob):
    v1 = await upload_video(client, alice)
    await upload_video(client, alice, publish=False)
    await client.post(f"{API}/likes/toggle/v/{v1}", headers=bob.headers)
    await client.post(f"{API}/subscriptions/c/{alice.id}", headers=bob.headers)
    await client.get(f"{API}/videos/{v1}")

    # Stats are public, no credentials needed
    resp = await client.get(f"{API}/dashboard/stats/{alice.id}")
    assert resp.status_code == 200
    stats = resp.json()["data"]
    assert stats["totalVideos"] == 2
    assert stats["totalViews"] == 1
    assert stats["totalLikes"] == 1
    assert stats["totalSubscribers"] == 1

    resp = await client.get(f"{API}/dashboard/stats/{alice.id}", params={"publishedOnly": "true"})
    assert resp.json()["data"]["totalVideos"] == 1

    resp = await client.get(f"{API}/dashboard/videos", headers=alice.headers)
    assert len(resp.json()["data"]) == 2


@pytest.mark.asyncio
async def test_channel_stats_for_unknown_channel(client):
    resp = await client.get(f"{API}/dashboard/stats/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Channel not found"
