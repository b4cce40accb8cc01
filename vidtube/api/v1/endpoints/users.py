"""User endpoints: registration, session, profile, channel, watch history, channel search."""
import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Form, Query, Request, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.api.deps import get_current_user, get_current_user_optional, get_db, get_storage
from vidtube.core.exceptions import ApiError
from vidtube.core.security import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    access_cookie_options,
    cookie_options,
    refresh_cookie_options,
)
from vidtube.models.user import User
from vidtube.schemas.common import ApiResponse, Page, ok
from vidtube.schemas.password import ChangePasswordRequest
from vidtube.schemas.user import (
    AccountUpdate,
    ChannelProfile,
    LoginRequest,
    LoginResponse,
    OwnerPublic,
    RegisteredUser,
    TokenPair,
    TokenRefresh,
    UserResponse,
)
from vidtube.schemas.video import WatchHistoryDay
from vidtube.services import auth_service, user_service
from vidtube.services.pagination import build_page
from vidtube.services.storage_service import StorageBackend, remove_temp_file, spool_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, **access_cookie_options())
    response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, **refresh_cookie_options())


def _clear_session_cookies(response: Response) -> None:
    options = cookie_options(0)
    options.pop("max_age")
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, **options)


@router.post("/register", response_model=ApiResponse[RegisteredUser], status_code=status.HTTP_201_CREATED)
async def register(
    username: str = Form(...),
    email: str = Form(...),
    full_name: str = Form(..., alias="fullName"),
    password: str = Form(...),
    avatar: UploadFile = File(...),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    avatar_path = await spool_image(avatar)
    cover_path = None
    if cover_image is not None and cover_image.filename:
        try:
            cover_path = await spool_image(cover_image)
        except ApiError:
            remove_temp_file(avatar_path)
            raise
    user = await auth_service.register_user(
        db,
        storage,
        username=username,
        email=email,
        full_name=full_name,
        password=password,
        avatar_path=avatar_path,
        cover_image_path=cover_path,
    )
    await db.commit()
    return ok(RegisteredUser(user_id=user.id), "User registered successfully", status.HTTP_201_CREATED)


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.authenticate_user(db, data.username, data.email, data.password)
    access_token, refresh_token = await auth_service.issue_tokens(db, user)
    await db.commit()
    _set_session_cookies(response, access_token, refresh_token)
    logger.info("User %s logged in", user.username)
    payload = LoginResponse(
        user=auth_service.user_to_response(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )
    return ok(payload, "User logged in successfully")


@router.post("/logout", response_model=ApiResponse[dict])
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.logout_user(db, current_user)
    await db.commit()
    _clear_session_cookies(response)
    return ok({}, "User logged out successfully")


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
async def refresh_token(
    request: Request,
    response: Response,
    body: TokenRefresh | None = Body(None),
    db: AsyncSession = Depends(get_db),
):
    token = request.cookies.get(REFRESH_TOKEN_COOKIE) or (body.refresh_token if body else None)
    _, access_token, new_refresh_token = await auth_service.refresh_session(db, token)
    await db.commit()
    _set_session_cookies(response, access_token, new_refresh_token)
    return ok(TokenPair(access_token=access_token, refresh_token=new_refresh_token), "Access token refreshed")


@router.post("/change-password", response_model=ApiResponse[dict])
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(db, current_user, data.old_password, data.new_password)
    await db.commit()
    return ok({}, "Password changed successfully")


@router.get("/current-user", response_model=ApiResponse[UserResponse])
async def current_user_profile(current_user: User = Depends(get_current_user)):
    return ok(auth_service.user_to_response(current_user), "Current user fetched successfully")


@router.patch("/update-account", response_model=ApiResponse[UserResponse])
async def update_account(
    data: AccountUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_account(db, current_user, data.full_name, data.email)
    await db.commit()
    return ok(auth_service.user_to_response(user), "Account details updated successfully")


@router.patch("/avatar", response_model=ApiResponse[UserResponse])
async def update_avatar(
    avatar: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    path = await spool_image(avatar)
    user = await user_service.update_avatar(db, storage, current_user, path)
    await db.commit()
    return ok(auth_service.user_to_response(user), "Avatar updated successfully")


@router.patch("/cover-image", response_model=ApiResponse[UserResponse])
async def update_cover_image(
    cover_image: UploadFile = File(..., alias="coverImage"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    path = await spool_image(cover_image)
    user = await user_service.update_cover_image(db, storage, current_user, path)
    await db.commit()
    return ok(auth_service.user_to_response(user), "Cover image updated successfully")


@router.get("/channel/{user_id}", response_model=ApiResponse[ChannelProfile])
async def channel_profile(
    user_id: UUID,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    actor_id = current_user.id if current_user else None
    profile = await user_service.get_channel_profile(db, user_id, actor_id)
    return ok(profile, "Channel profile fetched successfully")


@router.get("/watch-history", response_model=ApiResponse[Page[WatchHistoryDay]])
async def watch_history(
    page: int = Query(1, ge=1),
    limit: int = Query(3, ge=1, le=30),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    days, total = await user_service.get_watch_history(db, current_user.id, page=page, limit=limit)
    return ok(build_page(days, total, page, limit), "Watch history fetched successfully")


@router.delete("/watch-history", response_model=ApiResponse[dict])
async def clear_watch_history(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await user_service.clear_watch_history(db, current_user.id)
    await db.commit()
    return ok({"removed": removed}, "Watch history cleared successfully")


@router.get("/search", response_model=ApiResponse[Page[OwnerPublic]])
async def search_channels(
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    actor_id = current_user.id if current_user else None
    channels, total = await user_service.search_channels(db, query, actor_id, page=page, limit=limit)
    await db.commit()
    return ok(build_page(channels, total, page, limit), "Channels fetched successfully")
