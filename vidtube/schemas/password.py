"""Change password schema."""
from pydantic import Field

from vidtube.schemas.common import CamelModel


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)
