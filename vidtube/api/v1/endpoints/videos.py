"""Video endpoints: feed, detail, publish, update, delete, tags and related videos."""
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_current_user_optional, get_db, get_storage
from vidtube.core.exceptions import ApiError
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, Page, ok
from vidtube.schemas.video import DeletedVideo, PublishStatus, VideoDetail, VideoResponse, VideoSummary
from vidtube.services import video_service
from vidtube.services.pagination import build_page
from vidtube.services.storage_service import StorageBackend, remove_temp_file, spool_image, spool_video

router = APIRouter(prefix="/videos", tags=["videos"])


def _split_tags(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    return [t for t in raw.split(",") if t.strip()]


@router.get("", response_model=ApiResponse[Page[VideoSummary]])
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    query: str | None = Query(None),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
    user_id: UUID | None = Query(None, alias="userId"),
    category: str | None = Query(None),
    tag: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    videos, total = await video_service.list_videos(
        db,
        page=page,
        limit=limit,
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        user_id=user_id,
        category=category,
        tag=tag,
    )
    return ok(build_page(videos, total, page, limit), "Videos fetched successfully")


@router.post("", response_model=ApiResponse[VideoResponse], status_code=status.HTTP_201_CREATED)
async def publish_video(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    tags: str | None = Form(None),
    video: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    video_path = await spool_video(video)
    try:
        thumbnail_path = await spool_image(thumbnail)
    except ApiError:
        remove_temp_file(video_path)
        raise
    created = await video_service.publish_video(
        db,
        storage,
        current_user.id,
        title=title,
        description=description,
        category=category,
        tags=_split_tags(tags) or [],
        video_path=video_path,
        thumbnail_path=thumbnail_path,
    )
    await db.commit()
    return ok(video_service.video_to_response(created), "Video uploaded successfully", status.HTTP_201_CREATED)


@router.get("/tags/{tag}", response_model=ApiResponse[Page[VideoSummary]])
async def videos_by_tag(
    tag: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    videos, total = await video_service.list_videos_by_tag(db, tag, page=page, limit=limit)
    return ok(build_page(videos, total, page, limit), "Videos fetched successfully")


@router.get("/related/{video_id}", response_model=ApiResponse[list[VideoSummary]])
async def related_videos(
    video_id: UUID,
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    videos = await video_service.get_related_videos(db, video_id, limit=limit)
    return ok(videos, "Related videos fetched successfully")


@router.patch("/toggle/publish/{video_id}", response_model=ApiResponse[PublishStatus])
async def toggle_publish(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    published = await video_service.toggle_publish(db, video_id, current_user.id)
    await db.commit()
    return ok(PublishStatus(is_published=published), "Publish status toggled successfully")


@router.get("/{video_id}", response_model=ApiResponse[VideoDetail])
async def get_video(
    video_id: UUID,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    actor_id = current_user.id if current_user else None
    detail = await video_service.get_video_detail(db, video_id, actor_id)
    await db.commit()
    return ok(detail, "Video fetched successfully")


@router.patch("/{video_id}", response_model=ApiResponse[VideoResponse])
async def update_video(
    video_id: UUID,
    title: str | None = Form(None),
    description: str | None = Form(None),
    category: str | None = Form(None),
    tags: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    thumbnail_path = None
    if thumbnail is not None and thumbnail.filename:
        thumbnail_path = await spool_image(thumbnail)
    updated = await video_service.update_video(
        db,
        storage,
        video_id,
        current_user.id,
        title=title,
        description=description,
        category=category,
        tags=_split_tags(tags),
        thumbnail_path=thumbnail_path,
    )
    await db.commit()
    return ok(video_service.video_to_response(updated), "Video updated successfully")


@router.delete("/{video_id}", response_model=ApiResponse[DeletedVideo])
async def delete_video(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    deleted = await video_service.delete_video(db, storage, video_id, current_user.id)
    return ok(deleted, "Video deleted successfully")
