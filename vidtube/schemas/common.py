"""Response envelope, pagination page and shared base model."""
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Serialized as camelCase; accepts either camelCase or snake_case input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    status_code: int = 200
    message: str = "Success"
    data: T | None = None


class ErrorResponse(CamelModel):
    success: bool = False
    status_code: int
    message: str
    errors: list[Any] = Field(default_factory=list)


class Page(CamelModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


def ok(data: Any = None, message: str = "Success", status_code: int = 200) -> dict:
    """Build a success envelope; validated against the endpoint's response_model."""
    return {"success": True, "status_code": status_code, "message": message, "data": data}
