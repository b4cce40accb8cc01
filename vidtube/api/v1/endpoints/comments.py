"""Comment endpoints: threads, replies, edits, cascade delete and pinning."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_current_user_optional, get_db
from vidtube.models.user import User
from vidtube.schemas.comment import CommentCreate, CommentResponse, CommentUpdate, DeletedComment, PinStatus
from vidtube.schemas.common import ApiResponse, Page, ok
from vidtube.services import comment_service
from vidtube.services.pagination import build_page

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/replies/{comment_id}", response_model=ApiResponse[list[CommentResponse]])
async def list_replies(
    comment_id: UUID,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    actor_id = current_user.id if current_user else None
    replies = await comment_service.list_replies(db, comment_id, actor_id)
    return ok(replies, "Replies fetched successfully")


@router.patch("/c/{comment_id}", response_model=ApiResponse[CommentResponse])
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.update_comment(db, comment_id, current_user, data.content)
    await db.commit()
    return ok(comment, "Comment updated successfully")


@router.delete("/c/{comment_id}", response_model=ApiResponse[DeletedComment])
async def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await comment_service.delete_comment(db, comment_id, current_user.id)
    return ok(deleted, "Comment deleted successfully")


@router.patch("/{comment_id}/{video_id}/pin", response_model=ApiResponse[PinStatus])
async def pin_comment(
    comment_id: UUID,
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await comment_service.pin_comment(db, comment_id, video_id, current_user.id)
    return ok(result, "Comment pinned successfully")


@router.patch("/{comment_id}/{video_id}/unpin", response_model=ApiResponse[PinStatus])
async def unpin_comment(
    comment_id: UUID,
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await comment_service.unpin_comment(db, comment_id, video_id, current_user.id)
    return ok(result, "Comment unpinned successfully")


@router.get("/{video_id}", response_model=ApiResponse[Page[CommentResponse]])
async def list_comments(
    video_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = Query("newest"),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    actor_id = current_user.id if current_user else None
    comments, total = await comment_service.list_video_comments(
        db, video_id, actor_id, page=page, limit=limit, sort=sort
    )
    return ok(build_page(comments, total, page, limit), "Comments fetched successfully")


@router.post("/{video_id}", response_model=ApiResponse[CommentResponse], status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: UUID,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.add_comment(db, video_id, current_user, data.content)
    await db.commit()
    return ok(comment, "Comment added successfully", status.HTTP_201_CREATED)


@router.post("/{video_id}/{parent_id}", response_model=ApiResponse[CommentResponse], status_code=status.HTTP_201_CREATED)
async def add_reply(
    video_id: UUID,
    parent_id: UUID,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reply = await comment_service.add_comment(db, video_id, current_user, data.content, parent_id=parent_id)
    await db.commit()
    return ok(reply, "Reply added successfully", status.HTTP_201_CREATED)
