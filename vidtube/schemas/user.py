"""Pydantic schemas for User, channel profiles and auth."""
from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from vidtube.schemas.common import CamelModel


class UserResponse(CamelModel):
    """Own profile. Email is only included for the current user."""

    id: UUID
    username: str
    email: str | None = None
    full_name: str
    avatar: str
    cover_image: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class OwnerPublic(CamelModel):
    """Public-safe projection of a user joined into another document."""

    id: UUID
    username: str
    full_name: str
    avatar: str
    subscribers_count: int | None = None
    is_subscribed: bool | None = None


class ChannelProfile(CamelModel):
    id: UUID
    username: str
    full_name: str
    avatar: str
    cover_image: str | None = None
    email: str | None = None
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False
    created_at: datetime


class LoginRequest(CamelModel):
    username: str | None = None
    email: EmailStr | None = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _username_or_email(self):
        if not (self.username or self.email):
            raise ValueError("Either username or email is required")
        return self


class LoginResponse(CamelModel):
    user: UserResponse
    access_token: str
    refresh_token: str


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class TokenRefresh(CamelModel):
    refresh_token: str | None = None


class RegisteredUser(CamelModel):
    user_id: UUID


class AccountUpdate(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr

