"""Search history endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_db
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, ok
from vidtube.schemas.search_history import SearchHistoryResponse, SearchTerm
from vidtube.services import search_history_service

router = APIRouter(prefix="/search-history", tags=["search-history"])


@router.get("", response_model=ApiResponse[SearchHistoryResponse])
async def get_history(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    history = await search_history_service.get_history(db, current_user.id)
    return ok(history, "Search history fetched successfully")


@router.post("", response_model=ApiResponse[SearchHistoryResponse])
async def add_term(
    data: SearchTerm,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    history = await search_history_service.add_term(db, current_user.id, data.search_term)
    await db.commit()
    return ok(history, "Search term added successfully")


@router.patch("", response_model=ApiResponse[SearchHistoryResponse])
async def remove_term(
    data: SearchTerm,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    history = await search_history_service.remove_term(db, current_user.id, data.search_term)
    await db.commit()
    return ok(history, "Search term removed successfully")


@router.delete("", response_model=ApiResponse[SearchHistoryResponse])
async def clear_history(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    history = await search_history_service.clear_history(db, current_user.id)
    await db.commit()
    return ok(history, "Search history cleared successfully")
