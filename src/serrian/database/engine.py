"""Process-wide async database handle for stored builds.

The engine and its session factory are created lazily from ``Settings`` on
first use and dropped by :func:`close_db`.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from serrian.config import get_settings

from .models.base import Base

_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Engine for ``settings.database_url``; file SQLite gets its folder created."""
    global _engine

    if _engine is None:
        settings = get_settings()
        url = settings.database_url
        if url.startswith("sqlite") and ":memory:" not in url:
            Path(url.split("///")[-1]).parent.mkdir(parents=True, exist_ok=True)

        _engine = create_async_engine(url, echo=settings.debug)

    return _engine


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    One unit of work: commit on a clean exit, roll back on any exception.

    Example:
        async with get_session() as session:
            record = await session.get(BuildSubjectRecord, subject_id)
    """
    global _async_session_factory

    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)

    async with _async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the build tables if they do not exist yet."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine; the next call reconnects."""
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None
