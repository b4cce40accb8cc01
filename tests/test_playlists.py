import uuid

import pytest

from conftest import API, upload_video
from vidtube.core.config import settings


async def _playlist(client, user, name="Favourites"):
    resp = await client.post(
        f"{API}/playlist", json={"name": name, "description": "things I like"}, headers=user.headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


@pytest.mark.asyncio
async def test_add_and_remove_videos_in_order(client, alice):
    playlist_id = await _playlist(client, alice)
    first = await upload_video(client, alice, title="first")
    second = await upload_video(client, alice, title="second")

    await client.patch(f"{API}/playlist/add/{first}/{playlist_id}", headers=alice.headers)
    resp = await client.patch(f"{API}/playlist/add/{second}/{playlist_id}", headers=alice.headers)
    assert resp.json()["data"]["videoIds"] == [first, second]

    resp = await client.patch(f"{API}/playlist/add/{first}/{playlist_id}", headers=alice.headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Video is already in the playlist"

    resp = await client.get(f"{API}/playlist/{playlist_id}")
    detail = resp.json()["data"]
    assert [v["title"] for v in detail["videos"]] == ["first", "second"]
    assert detail["totalVideos"] == 2
    assert detail["owner"]["username"] == "alice"

    resp = await client.patch(f"{API}/playlist/remove/{first}/{playlist_id}", headers=alice.headers)
    assert resp.json()["data"]["videoIds"] == [second]

    resp = await client.patch(f"{API}/playlist/remove/{first}/{playlist_id}", headers=alice.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_only_owner_can_remove_or_edit(client, alice, bob):
    playlist_id = await _playlist(client, alice)
    video_id = await upload_video(client, alice)
    await client.patch(f"{API}/playlist/add/{video_id}/{playlist_id}", headers=alice.headers)

    resp = await client.patch(f"{API}/playlist/remove/{video_id}/{playlist_id}", headers=bob.headers)
    assert resp.status_code == 403
    resp = await client.patch(f"{API}/playlist/{playlist_id}", json={"name": "mine now"}, headers=bob.headers)
    assert resp.status_code == 403
    resp = await client.delete(f"{API}/playlist/{playlist_id}", headers=bob.headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_non_owner_add_follows_setting(client, monkeypatch, alice, bob):
    playlist_id = await _playlist(client, alice)
    video_id = await upload_video(client, bob)

    monkeypatch.setattr(settings, "PLAYLIST_ADD_REQUIRES_OWNER", True)
    resp = await client.patch(f"{API}/playlist/add/{video_id}/{playlist_id}", headers=bob.headers)
    assert resp.status_code == 403

    monkeypatch.setattr(settings, "PLAYLIST_ADD_REQUIRES_OWNER", False)
    resp = await client.patch(f"{API}/playlist/add/{video_id}/{playlist_id}", headers=bob.headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["videoIds"] == [video_id]


@pytest.mark.asyncio
async def test_detail_skips_deleted_videos_only(client, alice):
    playlist_id = await _playlist(client, alice)
    kept = await upload_video(client, alice, title="kept")
    removed = await upload_video(client, alice, title="removed")
    draft = await upload_video(client, alice, title="draft", publish=False)
    for video_id in (kept, removed, draft):
        await client.patch(f"{API}/playlist/add/{video_id}/{playlist_id}", headers=alice.headers)

    resp = await client.delete(f"{API}/videos/{removed}", headers=alice.headers)
    assert resp.status_code == 200

    resp = await client.get(f"{API}/playlist/{playlist_id}")
    detail = resp.json()["data"]
    assert [v["id"] for v in detail["videos"]] == [kept, draft]
    assert detail["totalVideos"] == 2


@pytest.mark.asyncio
async def test_detail_and_list_agree_after_unpublish(client, alice):
    playlist_id = await _playlist(client, alice)
    first = await upload_video(client, alice, title="first")
    second = await upload_video(client, alice, title="second")
    for video_id in (first, second):
        await client.patch(f"{API}/playlist/add/{video_id}/{playlist_id}", headers=alice.headers)

    resp = await client.patch(f"{API}/videos/toggle/publish/{second}", headers=alice.headers)
    assert resp.json()["data"]["isPublished"] is False

    resp = await client.get(f"{API}/playlist/{playlist_id}")
    detail = resp.json()["data"]
    resp = await client.get(f"{API}/playlist/user/{alice.id}")
    summary = resp.json()["data"][0]
    assert detail["totalVideos"] == summary["totalVideos"] == 2
    assert [v["id"] for v in detail["videos"]] == summary["videoIds"]


@pytest.mark.asyncio
async def test_user_playlists(client, alice):
    resp = await client.get(f"{API}/playlist/user/{alice.id}")
    assert resp.status_code == 200
    assert resp.json()["data"] == []

    playlist_id = await _playlist(client, alice)
    video_id = await upload_video(client, alice)
    await client.patch(f"{API}/playlist/add/{video_id}/{playlist_id}", headers=alice.headers)
    await _playlist(client, alice, name="Empty")

    resp = await client.get(f"{API}/playlist/user/{alice.id}")
    summaries = {p["name"]: p for p in resp.json()["data"]}
    assert summaries["Favourites"]["totalVideos"] == 1
    assert summaries["Favourites"]["thumbnail"].startswith("http://media.test/")
    assert summaries["Empty"]["totalVideos"] == 0
    assert summaries["Empty"]["thumbnail"] is None

    resp = await client.get(f"{API}/playlist/user/{uuid.uuid4()}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_and_delete_playlist(client, alice):
    playlist_id = await _playlist(client, alice)

    resp = await client.patch(f"{API}/playlist/{playlist_id}", json={}, headers=alice.headers)
    assert resp.status_code == 400

    resp = await client.patch(f"{API}/playlist/{playlist_id}", json={"name": "Renamed"}, headers=alice.headers)
    data = resp.json()["data"]
    assert data["name"] == "Renamed"
    assert data["description"] == "things I like"

    resp = await client.delete(f"{API}/playlist/{playlist_id}", headers=alice.headers)
    assert resp.json()["data"] == {"playlistId": playlist_id}
    resp = await client.get(f"{API}/playlist/{playlist_id}")
    assert resp.status_code == 404
