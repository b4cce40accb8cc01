"""Security utilities: password hashing and JWT token handling."""
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from vidtube.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(subject: str | UUID) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(subject: str | UUID) -> str:
    # jti keeps two refresh tokens issued within the same second distinct
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode = {"sub": str(subject), "exp": expire, "type": "refresh", "jti": secrets.token_hex(8)}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def subject_from_token(token: str | None, token_type: str) -> UUID | None:
    """Return the user id carried by a valid token of the given type, else None."""
    if not token:
        return None
    payload = decode_token(token)
    if not payload or payload.get("type") != token_type:
        return None
    try:
        return UUID(payload.get("sub") or "")
    except ValueError:
        return None


def cookie_options(max_age: int) -> dict:
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": "none" if settings.COOKIE_SECURE else "lax",
        "max_age": max_age,
    }


def access_cookie_options() -> dict:
    return cookie_options(settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)


def refresh_cookie_options() -> dict:
    return cookie_options(settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60)
