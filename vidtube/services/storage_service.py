"""Blob storage for media files (videos, thumbnails, avatars, cover images).

Uses local disk behind the StorageBackend protocol; a hosted media store can be
swapped in by implementing the same two coroutines. Callers hand over a spooled
temp file and get back a public handle, or ``None`` when the upload failed. The
temp file is always removed.
"""
import asyncio
import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fastapi import UploadFile

from vidtube.core.config import settings
from vidtube.core.exceptions import BadRequestError

logger = logging.getLogger(__name__)

# Allowed MIME types
IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}
VIDEO_TYPES = {"video/mp4", "video/webm"}

EXT_MAP = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
}


class StorageError(Exception):
    """Raised by a backend when a delete cannot be carried out."""


@dataclass
class UploadResult:
    url: str
    public_id: str
    secure_url: str
    duration: float | None = None


class StorageBackend(Protocol):
    """Protocol for storage backends."""

    async def upload(self, local_path: str | Path, resource_type: str) -> UploadResult | None:
        """Store the file and return its handle, or None if the upload failed."""
        ...

    async def delete(self, public_id: str, resource_type: str) -> dict:
        """Delete by public id. Returns {"result": "ok" | "not found"}.

        Backend failures (I/O, network, provider errors) are raised as
        StorageError.
        """
        ...


class LocalStorage:
    """Store files on local disk. Path: uploads/{resource_type}/{uuid}.{ext}"""

    def __init__(self, base_dir: str | None = None, base_url: str | None = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR).resolve()
        self.base_url = (base_url or settings.MEDIA_BASE_URL).rstrip("/")

    def _type_path(self, resource_type: str) -> Path:
        path = self.base_dir / resource_type
        path.mkdir(parents=True, exist_ok=True)
        return path

    async def upload(self, local_path: str | Path, resource_type: str) -> UploadResult | None:
        src = Path(local_path)
        try:
            filename = f"{uuid.uuid4().hex}{src.suffix}"
            public_id = f"{resource_type}/{filename}"
            await asyncio.to_thread(shutil.copy2, src, self._type_path(resource_type) / filename)
            duration = await probe_duration(src) if resource_type == "video" else None
            url = f"{self.base_url}/uploads/{public_id}"
            return UploadResult(url=url, public_id=public_id, secure_url=url, duration=duration)
        except OSError:
            logger.exception("Upload of %s failed", src.name)
            return None
        finally:
            remove_temp_file(src)

    async def delete(self, public_id: str, resource_type: str) -> dict:
        filepath = (self.base_dir / public_id).resolve()
        if self.base_dir not in filepath.parents:
            return {"result": "not found"}
        try:
            await asyncio.to_thread(filepath.unlink)
        except FileNotFoundError:
            return {"result": "not found"}
        except OSError as e:
            raise StorageError(f"Could not delete {public_id}") from e
        return {"result": "ok"}


async def probe_duration(path: Path) -> float | None:
    """Video duration in seconds via ffprobe, None if it cannot be determined."""
    if shutil.which(settings.FFPROBE_BINARY) is None:
        return None
    proc = await asyncio.create_subprocess_exec(
        settings.FFPROBE_BINARY,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    stdout, _ = await proc.communicate()
    try:
        return round(float(stdout.decode().strip()), 2)
    except ValueError:
        return None


def remove_temp_file(path: str | Path | None) -> None:
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError:
            logger.warning("Could not remove temp file %s", path)


async def spool_upload(file: UploadFile, allowed: set[str], max_size_mb: int) -> Path:
    """Validate an incoming multipart file and write it to the temp dir."""
    content_type = file.content_type or ""
    if content_type not in allowed:
        kinds = ", ".join(sorted(EXT_MAP[t].lstrip(".").upper() for t in allowed))
        raise BadRequestError(f"Invalid file format. Allowed: {kinds}.")
    data = await file.read()
    if len(data) > max_size_mb * 1024 * 1024:
        raise BadRequestError(f"File size exceeds {max_size_mb}MB.")
    temp_dir = Path(settings.TEMP_DIR)
    temp_dir.mkdir(parents=True, exist_ok=True)
    path = temp_dir / f"{uuid.uuid4().hex}{EXT_MAP[content_type]}"
    await asyncio.to_thread(path.write_bytes, data)
    return path


async def spool_image(file: UploadFile) -> Path:
    return await spool_upload(file, IMAGE_TYPES, settings.MAX_IMAGE_SIZE_MB)


async def spool_video(file: UploadFile) -> Path:
    return await spool_upload(file, VIDEO_TYPES, settings.MAX_VIDEO_SIZE_MB)


async def release_blob(storage: StorageBackend, public_id: str | None, resource_type: str) -> None:
    """Best-effort delete of a replaced blob; failures are logged, not raised."""
    if not public_id:
        return
    try:
        result = await storage.delete(public_id, resource_type)
    except StorageError:
        logger.warning("Failed to release %s blob %s", resource_type, public_id, exc_info=True)
        return
    if result.get("result") != "ok":
        logger.warning("Blob %s (%s) was not released: %s", public_id, resource_type, result)


# Singleton - swap implementation here when moving to a hosted media store
_storage: StorageBackend | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage
