import os
import tempfile
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

_media_root = tempfile.mkdtemp(prefix="vidtube-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_media_root}/bootstrap.db"
os.environ["UPLOAD_DIR"] = os.path.join(_media_root, "uploads")
os.environ["TEMP_DIR"] = os.path.join(_media_root, "temp")
os.environ["COOKIE_SECURE"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vidtube.db.base import Base
from vidtube.db.session import get_db
from vidtube.main import app
from vidtube.models.video import Video
from vidtube.services.storage_service import StorageError, UploadResult, get_storage

API = "/api/v1"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MP4 = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 256


class FakeStorage:
    """In-memory blob store with the same contract as LocalStorage."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_uploads = False
        self.fail_deletes = False

    async def upload(self, local_path, resource_type):
        path = Path(local_path)
        try:
            if self.fail_uploads:
                return None
            public_id = f"{resource_type}/{uuid.uuid4().hex}{path.suffix}"
            self.blobs[public_id] = path.read_bytes()
            url = f"http://media.test/{public_id}"
            duration = 12.5 if resource_type == "video" else None
            return UploadResult(url=url, public_id=public_id, secure_url=url, duration=duration)
        finally:
            path.unlink(missing_ok=True)

    async def delete(self, public_id, resource_type):
        if self.fail_deletes:
            raise StorageError(f"media host unavailable for {public_id}")
        self.deleted.append(public_id)
        if self.blobs.pop(public_id, None) is None:
            return {"result": "not found"}
        return {"result": "ok"}


@pytest.fixture
def storage():
    return FakeStorage()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vidtube.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_maker, storage):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def register_and_login(client: AsyncClient, username: str, password: str = "password123") -> SimpleNamespace:
    resp = await client.post(
        f"{API}/users/register",
        data={
            "username": username,
            "email": f"{username}@example.com",
            "fullName": username.title(),
            "password": password,
        },
        files={"avatar": ("avatar.png", PNG, "image/png")},
    )
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["data"]["userId"]

    resp = await client.post(f"{API}/users/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    # Tests authenticate with bearer headers so several users can share one client
    client.cookies.clear()
    return SimpleNamespace(
        id=user_id,
        username=username,
        access_token=data["accessToken"],
        refresh_token=data["refreshToken"],
        headers={"Authorization": f"Bearer {data['accessToken']}"},
    )


@pytest_asyncio.fixture
async def alice(client):
    return await register_and_login(client, "alice")


@pytest_asyncio.fixture
async def bob(client):
    return await register_and_login(client, "bob")


async def upload_video(
    client: AsyncClient,
    owner: SimpleNamespace,
    *,
    title: str = "My video",
    category: str = "Music",
    tags: str = "",
    publish: bool = True,
) -> str:
    resp = await client.post(
        f"{API}/videos",
        data={"title": title, "description": f"About {title}", "category": category, "tags": tags},
        files={
            "video": ("clip.mp4", MP4, "video/mp4"),
            "thumbnail": ("thumb.png", PNG, "image/png"),
        },
        headers=owner.headers,
    )
    assert resp.status_code == 201, resp.text
    video_id = resp.json()["data"]["id"]
    if publish:
        resp = await client.patch(f"{API}/videos/toggle/publish/{video_id}", headers=owner.headers)
        assert resp.json()["data"]["isPublished"] is True
    return video_id


async def seed_videos(session_maker, owner_id: str, count: int) -> list[uuid.UUID]:
    """Insert published videos directly, oldest first, one second apart."""
    base = datetime(2024, 1, 1)
    videos = []
    async with session_maker() as db:
        for i in range(count):
            video = Video(
                owner_id=uuid.UUID(owner_id),
                video_url=f"http://media.test/video/{i}.mp4",
                video_public_id=f"video/{i}.mp4",
                thumbnail_url=f"http://media.test/image/{i}.png",
                thumbnail_public_id=f"image/{i}.png",
                title=f"video {i + 1:02d}",
                description="seeded",
                category="Education",
                views=i,
                is_published=True,
                created_at=base + timedelta(seconds=i),
            )
            db.add(video)
            videos.append(video)
        await db.commit()
        return [v.id for v in videos]
