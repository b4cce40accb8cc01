"""Generic pagination over any ordered, filtered select."""
import math
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from vidtube.core.exceptions import BadRequestError

SORT_DIRECTIONS = ("asc", "desc")


async def paginate(db: AsyncSession, stmt: Select, *, page: int, limit: int) -> tuple[list[Any], int]:
    """Run ``stmt`` for one page. Returns (rows, total row count across all pages)."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = await db.scalar(count_stmt) or 0
    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    return list(result.all()), total


def build_page(items: list[Any], total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


def resolve_sort(
    sort_by: str,
    sort_type: str,
    allowed: dict[str, ColumnElement],
) -> ColumnElement:
    """Map a whitelisted (key, direction) pair to an ORDER BY clause.

    Unknown keys or directions are rejected before any query runs.
    """
    if sort_by not in allowed:
        raise BadRequestError(
            f"Invalid sortBy '{sort_by}'. Allowed: {', '.join(sorted(allowed))}",
        )
    if sort_type not in SORT_DIRECTIONS:
        raise BadRequestError(f"Invalid sortType '{sort_type}'. Allowed: asc, desc")
    column = allowed[sort_by]
    return column.asc() if sort_type == "asc" else column.desc()
