import asyncio
import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from conftest import API, upload_video
from vidtube.models.comment import Comment
from vidtube.models.engagement import Like
from vidtube.services import comment_service


async def _comment(client, user, video_id, content, parent_id=None):
    url = f"{API}/comments/{video_id}" if parent_id is None else f"{API}/comments/{video_id}/{parent_id}"
    resp = await client.post(url, json={"content": content}, headers=user.headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


@pytest.mark.asyncio
async def test_pin_swaps_previous_pinned_comment(client, session_maker, alice, bob):
    video_id = await upload_video(client, alice)
    first = await _comment(client, bob, video_id, "first")
    second = await _comment(client, bob, video_id, "second")

    resp = await client.patch(f"{API}/comments/{first}/{video_id}/pin", headers=alice.headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["unpinnedCommentId"] is None

    resp = await client.patch(f"{API}/comments/{second}/{video_id}/pin", headers=alice.headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["isPinned"] is True
    assert data["unpinnedCommentId"] == first

    async with session_maker() as db:
        pinned = (await db.scalars(select(Comment.id).where(Comment.is_pinned.is_(True)))).all()
    assert [str(p) for p in pinned] == [second]

    resp = await client.patch(f"{API}/comments/{second}/{video_id}/pin", headers=alice.headers)
    assert resp.status_code == 400

    resp = await client.patch(f"{API}/comments/{second}/{video_id}/unpin", headers=alice.headers)
    assert resp.json()["data"]["isPinned"] is False


@pytest.mark.asyncio
async def test_concurrent_pins_leave_exactly_one_pinned(client, session_maker, alice, bob):
    video_id = await upload_video(client, alice)
    first = await _comment(client, bob, video_id, "first")
    second = await _comment(client, bob, video_id, "second")

    responses = await asyncio.gather(
        client.patch(f"{API}/comments/{first}/{video_id}/pin", headers=alice.headers),
        client.patch(f"{API}/comments/{second}/{video_id}/pin", headers=alice.headers),
    )
    statuses = sorted(r.status_code for r in responses)
    assert statuses in ([200, 200], [200, 409])
    for resp in responses:
        if resp.status_code == 409:
            assert resp.json()["message"] == "Another comment was pinned on this video at the same time"

    async with session_maker() as db:
        pinned = await db.scalar(select(func.count(Comment.id)).where(Comment.is_pinned.is_(True)))
    assert pinned == 1


@pytest.mark.asyncio
async def test_pin_conflict_is_reported(client, session_maker, alice, bob):
    video_id = await upload_video(client, alice)
    first = await _comment(client, bob, video_id, "first")
    second = await _comment(client, bob, video_id, "second")

    async def pinned_elsewhere(*args, **kwargs):
        # Another request pins a comment between the lookup and the flush
        async with session_maker() as other:
            await other.execute(update(Comment).where(Comment.id == uuid.UUID(first)).values(is_pinned=True))
            await other.commit()
        return None

    with patch.object(comment_service, "_current_pinned", pinned_elsewhere):
        resp = await client.patch(f"{API}/comments/{second}/{video_id}/pin", headers=alice.headers)
    assert resp.status_code == 409

    async with session_maker() as db:
        pinned = (await db.scalars(select(Comment.id).where(Comment.is_pinned.is_(True)))).all()
    assert [str(p) for p in pinned] == [first]


@pytest.mark.asyncio
async def test_database_rejects_two_pinned_comments(client, session_maker, alice, bob):
    video_id = await upload_video(client, alice)
    await _comment(client, bob, video_id, "one")
    await _comment(client, bob, video_id, "two")

    async with session_maker() as db:
        with pytest.raises(IntegrityError):
            await db.execute(update(Comment).values(is_pinned=True))
            await db.commit()
        await db.rollback()


@pytest.mark.asyncio
async def test_pinned_comment_is_listed_first(client, alice, bob):
    video_id = await upload_video(client, alice)
    oldest = await _comment(client, bob, video_id, "oldest")
    await _comment(client, bob, video_id, "middle")
    newest = await _comment(client, bob, video_id, "newest")

    await client.patch(f"{API}/comments/{oldest}/{video_id}/pin", headers=alice.headers)

    resp = await client.get(f"{API}/comments/{video_id}")
    items = resp.json()["data"]["items"]
    assert items[0]["id"] == oldest
    assert items[0]["isPinned"] is True
    assert items[1]["id"] == newest

    resp = await client.get(f"{API}/comments/{video_id}", params={"sort": "popular"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_replies_are_oldest_first_and_one_level_deep(client, alice, bob):
    video_id = await upload_video(client, alice)
    parent = await _comment(client, alice, video_id, "parent")
    r1 = await _comment(client, bob, video_id, "r1", parent_id=parent)
    r2 = await _comment(client, alice, video_id, "r2", parent_id=parent)

    resp = await client.get(f"{API}/comments/replies/{parent}")
    assert [r["id"] for r in resp.json()["data"]] == [r1, r2]

    resp = await client.post(f"{API}/comments/{video_id}/{r1}", json={"content": "deep"}, headers=bob.headers)
    assert resp.status_code == 400

    resp = await client.get(f"{API}/comments/{video_id}")
    top = resp.json()["data"]["items"]
    assert len(top) == 1
    assert top[0]["repliesCount"] == 2


@pytest.mark.asyncio
async def test_only_video_owner_can_pin(client, alice, bob):
    video_id = await upload_video(client, alice)
    comment_id = await _comment(client, bob, video_id, "mine")
    resp = await client.patch(f"{API}/comments/{comment_id}/{video_id}/pin", headers=bob.headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_comment_on_missing_video(client, alice):
    resp = await client.post(f"{API}/comments/{uuid.uuid4()}", json={"content": "hi"}, headers=alice.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_comment_cascades_to_replies_and_likes(client, session_maker, alice, bob):
    video_id = await upload_video(client, alice)
    parent = await _comment(client, alice, video_id, "parent")
    r1 = await _comment(client, bob, video_id, "r1", parent_id=parent)
    r2 = await _comment(client, bob, video_id, "r2", parent_id=parent)
    await client.post(f"{API}/likes/toggle/c/{parent}", headers=bob.headers)
    await client.post(f"{API}/likes/toggle/c/{r1}", headers=alice.headers)
    await client.post(f"{API}/likes/toggle/c/{r2}", headers=alice.headers)

    resp = await client.delete(f"{API}/comments/c/{parent}", headers=bob.headers)
    assert resp.status_code == 403

    resp = await client.delete(f"{API}/comments/c/{parent}", headers=alice.headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["deletedComments"] == 3
    assert data["deletedLikes"] == 3

    async with session_maker() as db:
        assert await db.scalar(select(func.count(Comment.id))) == 0
        assert await db.scalar(select(func.count(Like.id))) == 0


@pytest.mark.asyncio
async def test_delete_plain_comment(client, alice):
    video_id = await upload_video(client, alice)
    comment_id = await _comment(client, alice, video_id, "alone")
    resp = await client.delete(f"{API}/comments/c/{comment_id}", headers=alice.headers)
    assert resp.json()["data"] == {"commentId": comment_id, "deletedComments": 1, "deletedLikes": 0}


@pytest.mark.asyncio
async def test_failed_cascade_removes_nothing(client, session_maker, alice, bob):
    video_id = await upload_video(client, alice)
    parent = await _comment(client, alice, video_id, "parent")
    reply = await _comment(client, bob, video_id, "reply", parent_id=parent)
    await client.post(f"{API}/likes/toggle/c/{parent}", headers=bob.headers)
    await client.post(f"{API}/likes/toggle/c/{reply}", headers=alice.headers)

    real_delete_likes = comment_service.delete_likes
    calls = []

    async def flaky_delete_likes(db, kind, ids):
        calls.append(ids)
        if len(calls) == 2:
            raise SQLAlchemyError("connection lost")
        return await real_delete_likes(db, kind, ids)

    with patch.object(comment_service, "delete_likes", flaky_delete_likes):
        resp = await client.delete(f"{API}/comments/c/{parent}", headers=alice.headers)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to delete comment"

    async with session_maker() as db:
        assert await db.scalar(select(func.count(Comment.id))) == 2
        assert await db.scalar(select(func.count(Like.id))) == 2


@pytest.mark.asyncio
async def test_update_comment_marks_edited(client, alice, bob):
    video_id = await upload_video(client, alice)
    comment_id = await _comment(client, bob, video_id, "typo")

    resp = await client.patch(f"{API}/comments/c/{comment_id}", json={"content": "fixed"}, headers=alice.headers)
    assert resp.status_code == 403

    resp = await client.patch(f"{API}/comments/c/{comment_id}", json={"content": "fixed"}, headers=bob.headers)
    data = resp.json()["data"]
    assert data["content"] == "fixed"
    assert data["isEdited"] is True

    resp = await client.patch(f"{API}/comments/c/{comment_id}", json={"content": "   "}, headers=bob.headers)
    assert resp.status_code == 400
