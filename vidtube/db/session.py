"""Async database session and engine."""
import logging
from collections.abc import AsyncGenerator

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from vidtube.core.config import settings

logger = logging.getLogger(__name__)

# Mask password in logs (show only host/db part)
_db_display = settings.DATABASE_URL.split("@")[-1].split("?")[0] if "@" in settings.DATABASE_URL else "configured"
logger.info("Database URL: ...@%s", _db_display)

_engine_kwargs: dict = {"echo": settings.DEBUG, "pool_pre_ping": True}
if not settings.DATABASE_URL.startswith("sqlite"):
    _engine_kwargs.update(pool_size=10, max_overflow=20, connect_args={"timeout": 10})

engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)


class Base(DeclarativeBase):
    pass


async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def insert_ignoring_conflicts(db: AsyncSession, model):
    """INSERT ... ON CONFLICT DO NOTHING for the dialect the session is bound to.

    Used where a unique constraint is the arbiter of concurrent creates
    (likes, subscriptions, watch history). A rowcount of 0 means the row
    already existed.
    """
    dialect = db.get_bind().dialect.name
    insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
    return insert(model)
