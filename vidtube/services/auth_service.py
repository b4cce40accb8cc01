"""Authentication business logic."""
import logging
from pathlib import Path
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import (
    ApiError,
    BadRequestError,
    ConflictError,
    InternalServerError,
    NotFoundError,
    UnauthorizedError,
)
from vidtube.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    subject_from_token,
    verify_password,
)
from vidtube.models.user import User
from vidtube.schemas.user import UserResponse
from vidtube.services.storage_service import StorageBackend, release_blob, remove_temp_file

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username.lower()))
    return result.scalar_one_or_none()


def user_to_response(user: User, include_email: bool = True) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email if include_email else None,
        full_name=user.full_name,
        avatar=user.avatar_url,
        cover_image=user.cover_image_url,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


async def register_user(
    db: AsyncSession,
    storage: StorageBackend,
    *,
    username: str,
    email: str,
    full_name: str,
    password: str,
    avatar_path: Path,
    cover_image_path: Path | None = None,
) -> User:
    try:
        if any(not (field or "").strip() for field in (username, email, full_name, password)):
            raise BadRequestError("All fields are required")
        username, email = username.strip().lower(), email.strip().lower()
        existing = await db.scalar(select(User.id).where(or_(User.username == username, User.email == email)))
        if existing:
            raise ConflictError("User with this email or username already exists")
    except ApiError:
        remove_temp_file(avatar_path)
        remove_temp_file(cover_image_path)
        raise

    avatar = await storage.upload(avatar_path, "image")
    if avatar is None:
        remove_temp_file(cover_image_path)
        raise InternalServerError("Failed to upload avatar")
    cover = await storage.upload(cover_image_path, "image") if cover_image_path else None
    if cover_image_path and cover is None:
        logger.warning("Cover image upload failed during registration of %s", username)

    user = User(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        full_name=full_name.strip(),
        avatar_url=avatar.secure_url,
        avatar_public_id=avatar.public_id,
        cover_image_url=cover.secure_url if cover else None,
        cover_image_public_id=cover.public_id if cover else None,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        await release_blob(storage, avatar.public_id, "image")
        await release_blob(storage, cover.public_id if cover else None, "image")
        raise ConflictError("User with this email or username already exists")
    logger.info("Registered user %s", user.username)
    return user


async def authenticate_user(db: AsyncSession, username: str | None, email: str | None, password: str) -> User:
    if username:
        user = await get_user_by_username(db, username)
    else:
        user = await get_user_by_email(db, email or "")
    if not user:
        raise NotFoundError("User does not exist")
    if not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", user.username)
        raise UnauthorizedError("Invalid user credentials")
    return user


async def issue_tokens(db: AsyncSession, user: User) -> tuple[str, str]:
    """New access/refresh pair; the refresh token replaces any earlier session."""
    access_token, refresh_token = create_access_token(user.id), create_refresh_token(user.id)
    user.refresh_token = refresh_token
    await db.flush()
    return access_token, refresh_token


async def logout_user(db: AsyncSession, user: User) -> None:
    user.refresh_token = None
    await db.flush()


async def refresh_session(db: AsyncSession, token: str | None) -> tuple[User, str, str]:
    if not token:
        raise UnauthorizedError("Refresh token is required")
    user_id: UUID | None = subject_from_token(token, "refresh")
    if user_id is None:
        raise UnauthorizedError("Invalid refresh token")
    user = await db.get(User, user_id)
    if not user:
        raise UnauthorizedError("Invalid refresh token")
    if user.refresh_token != token:
        raise UnauthorizedError("Refresh token is expired or used")
    access_token, refresh_token = await issue_tokens(db, user)
    logger.info("Refreshed session for %s", user.username)
    return user, access_token, refresh_token


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, user.password_hash):
        raise BadRequestError("Invalid old password")
    user.password_hash = get_password_hash(new_password)
    await db.flush()
