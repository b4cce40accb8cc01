"""Pydantic schemas for SearchHistory."""
from datetime import datetime

from pydantic import Field, field_validator

from vidtube.schemas.common import CamelModel


class SearchTerm(CamelModel):
    search_term: str = Field(..., min_length=1, max_length=200)

    @field_validator("search_term")
    @classmethod
    def _normalize(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Search term is required")
        return v


class SearchHistoryResponse(CamelModel):
    searches: list[str] = []
    updated_at: datetime | None = None
