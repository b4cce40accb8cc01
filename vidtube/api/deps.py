"""API dependencies: auth, db session, blob storage."""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.core.exceptions import UnauthorizedError
from vidtube.core.security import ACCESS_TOKEN_COOKIE, subject_from_token
from vidtube.db.session import get_db
from vidtube.models.user import User
from vidtube.services.storage_service import StorageBackend, get_storage

security = HTTPBearer(auto_error=False)

__all__ = ["get_db", "get_storage", "get_current_user", "get_current_user_optional", "StorageBackend"]


def _access_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    return credentials.credentials if credentials else None


async def get_current_user_optional(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """The caller, or None for anonymous requests and invalid tokens."""
    user_id = subject_from_token(_access_token(request, credentials), "access")
    if user_id is None:
        return None
    return await db.get(User, user_id)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    token = _access_token(request, credentials)
    if not token:
        raise UnauthorizedError("Unauthorized request")
    user_id = subject_from_token(token, "access")
    if user_id is None:
        raise UnauthorizedError("Invalid access token")
    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user
