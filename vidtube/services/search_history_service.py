"""Per-user search history: most recent first, de-duplicated, capped."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.config import settings
from vidtube.core.exceptions import BadRequestError, NotFoundError
from vidtube.models.search_history import SearchHistory
from vidtube.schemas.search_history import SearchHistoryResponse


def to_response(history: SearchHistory | None) -> SearchHistoryResponse:
    if history is None:
        return SearchHistoryResponse(searches=[])
    return SearchHistoryResponse(searches=list(history.searches or []), updated_at=history.updated_at)


async def _get(db: AsyncSession, user_id: UUID) -> SearchHistory | None:
    return await db.scalar(select(SearchHistory).where(SearchHistory.user_id == user_id))


async def get_history(db: AsyncSession, user_id: UUID) -> SearchHistoryResponse:
    return to_response(await _get(db, user_id))


def push_term(searches: list[str], term: str, limit: int) -> list[str]:
    """Put ``term`` in front, dropping an earlier occurrence and anything past ``limit``."""
    return ([term] + [s for s in searches if s != term])[:limit]


async def add_term(db: AsyncSession, user_id: UUID, term: str) -> SearchHistoryResponse:
    term = term.strip().lower()
    if not term:
        raise BadRequestError("Search term is required")
    history = await _get(db, user_id)
    if history is None:
        history = SearchHistory(user_id=user_id, searches=[])
        db.add(history)
    # A new list object so the JSON column is flagged as changed
    history.searches = push_term(list(history.searches or []), term, settings.SEARCH_HISTORY_LIMIT)
    await db.flush()
    return to_response(history)


async def remove_term(db: AsyncSession, user_id: UUID, term: str) -> SearchHistoryResponse:
    term = term.strip().lower()
    history = await _get(db, user_id)
    if history is None or term not in (history.searches or []):
        raise NotFoundError("Search term not found in history")
    history.searches = [s for s in history.searches if s != term]
    await db.flush()
    return to_response(history)


async def clear_history(db: AsyncSession, user_id: UUID) -> SearchHistoryResponse:
    history = await _get(db, user_id)
    if history is not None:
        history.searches = []
        await db.flush()
    return to_response(history)
